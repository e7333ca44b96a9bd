from fastapi import HTTPException

from tournament_app.exceptions import ConfigurationError, NotFoundError, StateError, TournamentError


def to_http_exception(e: TournamentError) -> HTTPException:
    """Map a domain error onto the HTTP status the API reports for it."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StateError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
