"""
Domain errors raised by the services layer.

Routes translate these into HTTP responses:
- NotFoundError      -> 404
- ConfigurationError -> 400
- StateError         -> 409
"""


class TournamentError(Exception):
    """Base error for tournament operations"""

    pass


class ConfigurationError(TournamentError):
    """Tournament setup cannot produce a valid fixture list or schedule"""

    pass


class NotFoundError(ConfigurationError):
    pass


class TournamentNotFoundError(NotFoundError):
    def __init__(self, tournament_id: int):
        self.tournament_id = tournament_id
        super().__init__(f"Tournament {tournament_id} not found")


class MatchNotFoundError(NotFoundError):
    def __init__(self, tournament_id: int, link_id: int):
        self.tournament_id = tournament_id
        self.link_id = link_id
        super().__init__(f"Match {link_id} not found in tournament {tournament_id}")


class StateError(TournamentError):
    """Operation is not valid for the current match or bracket state"""

    pass
