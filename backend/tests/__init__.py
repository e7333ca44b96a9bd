# Register every SQLModel table before any test database is created
from tournament_app.models.match import Match  # noqa: F401
from tournament_app.models.match_performance import MatchPerformance  # noqa: F401
from tournament_app.models.player_stat import PlayerTournamentStat  # noqa: F401
from tournament_app.models.standing import TournamentStanding  # noqa: F401
from tournament_app.models.team import Team  # noqa: F401
from tournament_app.models.tournament import Tournament  # noqa: F401
from tournament_app.models.tournament_match import TournamentMatch  # noqa: F401
from tournament_app.models.tournament_team import TournamentTeam  # noqa: F401
from tournament_app.models.venue import Venue  # noqa: F401
