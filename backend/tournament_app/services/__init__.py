"""
Services Layer

Pure business logic services that:
- Accept domain inputs (team ids, fixtures, standing records, sessions)
- Return domain outputs (new fixtures, new records, result summaries)
- Do NOT depend on HTTP request/response objects
- Do NOT mutate data unless explicitly designed to (tournament_service, storage)
"""
