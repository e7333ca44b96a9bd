from tournament_app.models.match import Match
from tournament_app.models.match_performance import MatchPerformance
from tournament_app.models.player_stat import PlayerTournamentStat
from tournament_app.models.standing import TournamentStanding
from tournament_app.models.team import Team
from tournament_app.models.tournament import Tournament
from tournament_app.models.tournament_match import TournamentMatch
from tournament_app.models.tournament_team import TournamentTeam
from tournament_app.models.venue import Venue

__all__ = [
    "Tournament",
    "TournamentTeam",
    "TournamentMatch",
    "TournamentStanding",
    "Team",
    "Venue",
    "Match",
    "MatchPerformance",
    "PlayerTournamentStat",
]
