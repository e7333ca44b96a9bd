"""
Persistence adapter for tournament data.

The only component that reads or writes the database. Wraps a SQLModel
Session; callers decide when to commit().
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from tournament_app.models import (
    Match,
    MatchPerformance,
    PlayerTournamentStat,
    Team,
    Tournament,
    TournamentMatch,
    TournamentStanding,
    TournamentTeam,
    Venue,
)


class TournamentStorage:
    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    # ------------------------------------------------------------------
    # Tournaments, teams, venues
    # ------------------------------------------------------------------

    def create_tournament(self, data: Dict) -> Tournament:
        tournament = Tournament(**data)
        self.session.add(tournament)
        self.session.flush()
        return tournament

    def list_tournaments(self) -> List[Tournament]:
        return list(self.session.exec(select(Tournament).order_by(Tournament.id)).all())

    def get_tournament(self, tournament_id: int) -> Optional[Tournament]:
        return self.session.get(Tournament, tournament_id)

    def update_tournament(self, tournament_id: int, patch: Dict) -> Optional[Tournament]:
        return self._patch(Tournament, tournament_id, patch)

    def create_tournament_team(self, data: Dict) -> TournamentTeam:
        entry = TournamentTeam(**data)
        self.session.add(entry)
        self.session.flush()
        return entry

    def get_tournament_team_entry(self, tournament_id: int, team_id: int) -> Optional[TournamentTeam]:
        return self.session.exec(
            select(TournamentTeam).where(
                TournamentTeam.tournament_id == tournament_id, TournamentTeam.team_id == team_id
            )
        ).first()

    def get_tournament_teams(self, tournament_id: int) -> List[TournamentTeam]:
        """Registered teams in seed order (seed nulls last, then registration order)."""
        rows = self.session.exec(
            select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id).order_by(TournamentTeam.id)
        ).all()
        return sorted(rows, key=lambda r: (r.seed is None, r.seed or 0, r.id))

    def update_tournament_team(self, entry_id: int, patch: Dict) -> Optional[TournamentTeam]:
        return self._patch(TournamentTeam, entry_id, patch)

    def create_team(self, data: Dict) -> Team:
        team = Team(**data)
        self.session.add(team)
        self.session.flush()
        return team

    def get_team(self, team_id: int) -> Optional[Team]:
        return self.session.get(Team, team_id)

    def get_team_by_name(self, name: str) -> Optional[Team]:
        return self.session.exec(select(Team).where(Team.name == name)).first()

    def list_teams(self) -> List[Team]:
        return list(self.session.exec(select(Team).order_by(Team.id)).all())

    def create_venue(self, data: Dict) -> Venue:
        venue = Venue(**data)
        self.session.add(venue)
        self.session.flush()
        return venue

    def get_venues(self, venue_ids: Sequence[int]) -> List[Venue]:
        if not venue_ids:
            return []
        rows = self.session.exec(select(Venue).where(Venue.id.in_(list(venue_ids)))).all()
        by_id = {v.id: v for v in rows}
        return [by_id[v] for v in venue_ids if v in by_id]

    def get_all_venues(self) -> List[Venue]:
        return list(self.session.exec(select(Venue).order_by(Venue.id)).all())

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def create_match(self, data: Dict) -> Match:
        match = Match(**data)
        self.session.add(match)
        self.session.flush()
        return match

    def get_match(self, match_id: int) -> Optional[Match]:
        return self.session.get(Match, match_id)

    def update_match(self, match_id: int, patch: Dict) -> Optional[Match]:
        return self._patch(Match, match_id, patch)

    def create_tournament_match(self, data: Dict) -> TournamentMatch:
        link = TournamentMatch(**data)
        self.session.add(link)
        self.session.flush()
        return link

    def get_tournament_match(self, link_id: int) -> Optional[TournamentMatch]:
        return self.session.get(TournamentMatch, link_id)

    def get_tournament_matches_by_tournament(self, tournament_id: int) -> List[TournamentMatch]:
        return list(
            self.session.exec(
                select(TournamentMatch)
                .where(TournamentMatch.tournament_id == tournament_id)
                .order_by(TournamentMatch.match_number)
            ).all()
        )

    def update_tournament_match(self, link_id: int, patch: Dict) -> Optional[TournamentMatch]:
        """Patch a link row; team slot changes are mirrored onto the linked Match."""
        link = self._patch(TournamentMatch, link_id, patch)
        if link is None:
            return None
        mirror = {}
        if "home_team_id" in patch:
            mirror["team1_id"] = patch["home_team_id"]
        if "away_team_id" in patch:
            mirror["team2_id"] = patch["away_team_id"]
        if "status" in patch:
            mirror["status"] = patch["status"]
        if mirror:
            self._patch(Match, link.match_id, mirror)
        return link

    def delete_tournament_match(self, link_id: int) -> None:
        """Delete a link row and the Match it owns (performances included)."""
        link = self.session.get(TournamentMatch, link_id)
        if link is None:
            return
        match = self.session.get(Match, link.match_id)
        self.session.delete(link)
        if match is not None:
            for performance in self.get_match_performances(match.id):
                self.session.delete(performance)
            self.session.flush()
            self.session.delete(match)
        self.session.flush()

    # ------------------------------------------------------------------
    # Standings
    # ------------------------------------------------------------------

    def create_tournament_standing(self, data: Dict) -> TournamentStanding:
        standing = TournamentStanding(**data)
        self.session.add(standing)
        self.session.flush()
        return standing

    def get_tournament_standing_by_team(self, tournament_id: int, team_id: int) -> Optional[TournamentStanding]:
        return self.session.exec(
            select(TournamentStanding).where(
                TournamentStanding.tournament_id == tournament_id,
                TournamentStanding.team_id == team_id,
            )
        ).first()

    def get_tournament_standings_by_tournament(self, tournament_id: int) -> List[TournamentStanding]:
        return list(
            self.session.exec(
                select(TournamentStanding)
                .where(TournamentStanding.tournament_id == tournament_id)
                .order_by(TournamentStanding.team_id)
            ).all()
        )

    def update_tournament_standing(self, standing_id: int, patch: Dict) -> Optional[TournamentStanding]:
        patch = dict(patch, updated_at=datetime.utcnow())
        return self._patch(TournamentStanding, standing_id, patch)

    def delete_tournament_standings(self, tournament_id: int) -> None:
        for standing in self.get_tournament_standings_by_tournament(tournament_id):
            self.session.delete(standing)
        self.session.flush()

    # ------------------------------------------------------------------
    # Player statistics
    # ------------------------------------------------------------------

    def create_match_performance(self, data: Dict) -> MatchPerformance:
        performance = MatchPerformance(**data)
        self.session.add(performance)
        self.session.flush()
        return performance

    def get_match_performances(self, match_id: int) -> List[MatchPerformance]:
        return list(
            self.session.exec(
                select(MatchPerformance).where(MatchPerformance.match_id == match_id).order_by(MatchPerformance.id)
            ).all()
        )

    def get_player_tournament_stats(self, tournament_id: int, user_id: int) -> Optional[PlayerTournamentStat]:
        return self.session.exec(
            select(PlayerTournamentStat).where(
                PlayerTournamentStat.tournament_id == tournament_id,
                PlayerTournamentStat.user_id == user_id,
            )
        ).first()

    def create_player_tournament_stats(self, data: Dict) -> PlayerTournamentStat:
        stat = PlayerTournamentStat(**data)
        self.session.add(stat)
        self.session.flush()
        return stat

    def update_player_tournament_stats(
        self, tournament_id: int, user_id: int, patch: Dict
    ) -> Optional[PlayerTournamentStat]:
        stat = self.get_player_tournament_stats(tournament_id, user_id)
        if stat is None:
            return None
        return self._patch(PlayerTournamentStat, stat.id, dict(patch, updated_at=datetime.utcnow()))

    def get_player_tournament_stats_by_tournament(self, tournament_id: int) -> List[PlayerTournamentStat]:
        return list(
            self.session.exec(
                select(PlayerTournamentStat)
                .where(PlayerTournamentStat.tournament_id == tournament_id)
                .order_by(PlayerTournamentStat.user_id)
            ).all()
        )

    # ------------------------------------------------------------------

    def _patch(self, model, row_id: int, patch: Dict):
        row = self.session.get(model, row_id)
        if row is None:
            return None
        for key, value in patch.items():
            setattr(row, key, value)
        self.session.add(row)
        self.session.flush()
        return row
