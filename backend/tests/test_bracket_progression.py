"""
Tests for bracket progression: slot arithmetic, tie resolution, knockout
and IPL playoff routing, group-stage and league seeding.
"""

import pytest

from tournament_app.exceptions import StateError
from tournament_app.models.tournament_match import TournamentMatch
from tournament_app.services.bracket_progression import (
    HomeSideTieResolver,
    SlotAssignment,
    StrictTieResolver,
    decide_winner,
    group_stage_assignments,
    knockout_advancement,
    needs_write,
    next_slot,
    playoff_seed_assignments,
)
from tournament_app.services.standings_engine import MatchResult, StandingRecord, rank_by_group, rank_standings


def _link(link_id, stage, round, position=None, home=None, away=None, status="scheduled", **kwargs):
    return TournamentMatch(
        id=link_id,
        tournament_id=1,
        match_id=link_id,
        round=round,
        match_number=link_id,
        stage=stage,
        bracket_position=position,
        home_team_id=home,
        away_team_id=away,
        status=status,
        **kwargs,
    )


def _result(home, away, result):
    return MatchResult(home_team_id=home, away_team_id=away, status="completed", result=result, match_id=99)


class TestSlotArithmetic:
    @pytest.mark.parametrize("position,expected", [(0, (0, "home")), (1, (0, "away")), (2, (1, "home")), (5, (2, "away"))])
    def test_next_slot(self, position, expected):
        assert next_slot(position) == expected

    def test_needs_write(self):
        link = _link(1, "final", 2, 0, home=5)
        assert needs_write(link, SlotAssignment(1, "away", 6))
        assert not needs_write(link, SlotAssignment(1, "home", 5))
        with pytest.raises(StateError):
            needs_write(link, SlotAssignment(1, "home", 6))


class TestTieResolution:
    def test_decisive_result(self):
        assert decide_winner(_result(1, 2, "away_win"), HomeSideTieResolver()) == (2, 1)

    def test_home_side_default_on_tie(self):
        assert decide_winner(_result(1, 2, "tie"), HomeSideTieResolver()) == (1, 2)

    def test_strict_resolver_refuses(self):
        with pytest.raises(StateError):
            decide_winner(_result(1, 2, "no_result"), StrictTieResolver())


class TestKnockoutAdvancement:
    def _bracket(self):
        return [
            _link(1, "semi-final", 1, 0, home=1, away=4),
            _link(2, "semi-final", 1, 1, home=2, away=3),
            _link(3, "final", 2, 0),
        ]

    def test_odd_position_fills_away_slot(self):
        links = self._bracket()
        assignments = knockout_advancement(links[1], _result(2, 3, "away_win"), links, HomeSideTieResolver())
        assert assignments == [SlotAssignment(3, "away", 3, "winner of match 2")]

    def test_even_position_fills_home_slot(self):
        links = self._bracket()
        assignments = knockout_advancement(links[0], _result(1, 4, "home_win"), links, HomeSideTieResolver())
        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [(3, "home", 1)]

    def test_final_and_league_matches_do_nothing(self):
        links = self._bracket()
        assert knockout_advancement(links[2], _result(1, 3, "home_win"), links, HomeSideTieResolver()) == []
        league = _link(9, "league", 1)
        assert knockout_advancement(league, _result(1, 3, "home_win"), [league], HomeSideTieResolver()) == []

    def test_missing_target_is_noop(self):
        links = self._bracket()[:2]
        assert knockout_advancement(links[0], _result(1, 4, "home_win"), links, HomeSideTieResolver()) == []


class TestPlayoffRouting:
    def _playoffs(self):
        flags = {"is_playoff": True}
        return [
            _link(10, "qualifier-1", 15, 0, home=1, away=2, **flags),
            _link(11, "eliminator", 15, 1, home=3, away=4, is_eliminator=True, **flags),
            _link(12, "qualifier-2", 16, 0, **flags),
            _link(13, "final", 17, 0, **flags),
        ]

    def test_qualifier_one_sends_winner_to_final_and_loser_to_q2(self):
        links = self._playoffs()
        assignments = knockout_advancement(links[0], _result(1, 2, "away_win"), links, HomeSideTieResolver())
        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [(13, "home", 2), (12, "home", 1)]

    def test_eliminator_winner_to_q2_away(self):
        links = self._playoffs()
        assignments = knockout_advancement(links[1], _result(3, 4, "home_win"), links, HomeSideTieResolver())
        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [(12, "away", 3)]

    def test_q2_winner_to_final_away(self):
        links = self._playoffs()
        assignments = knockout_advancement(links[2], _result(1, 3, "away_win"), links, HomeSideTieResolver())
        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [(13, "away", 3)]


class TestStageSeeding:
    def _group_links(self, status):
        return [
            _link(1, "group", 1, home=1, away=2, status=status, group_name="A"),
            _link(2, "group", 1, home=3, away=4, status="completed", group_name="B"),
            _link(3, "final", 2, 0, home_placeholder="A1", away_placeholder="B1"),
        ]

    def _tables(self):
        return rank_by_group(
            [
                StandingRecord(team_id=1, group_name="A", points=0),
                StandingRecord(team_id=2, group_name="A", points=2),
                StandingRecord(team_id=3, group_name="B", points=2),
                StandingRecord(team_id=4, group_name="B", points=0),
            ]
        )

    def test_incomplete_group_stage_is_noop(self):
        assert group_stage_assignments(self._group_links("live"), self._tables()) == []

    def test_group_winners_fill_labels(self):
        assignments = group_stage_assignments(self._group_links("completed"), self._tables())
        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [(3, "home", 2), (3, "away", 3)]

    def test_league_top_four_fill_playoffs(self):
        links = [
            _link(1, "league", 1, home=1, away=2, status="completed"),
            _link(2, "qualifier-1", 2, 0, is_playoff=True, home_placeholder="League 1st", away_placeholder="League 2nd"),
            _link(3, "eliminator", 2, 1, is_playoff=True, home_placeholder="League 3rd", away_placeholder="League 4th"),
        ]
        ranked = rank_standings([StandingRecord(team_id=t, points=10 - t) for t in (1, 2, 3, 4, 5)])
        assignments = playoff_seed_assignments(links, ranked)

        assert [(a.link_id, a.side, a.team_id) for a in assignments] == [
            (2, "home", 1),
            (2, "away", 2),
            (3, "home", 3),
            (3, "away", 4),
        ]

    def test_playoffs_wait_for_league(self):
        links = [
            _link(1, "league", 1, home=1, away=2, status="scheduled"),
            _link(2, "qualifier-1", 2, 0, is_playoff=True, home_placeholder="League 1st"),
        ]
        assert playoff_seed_assignments(links, rank_standings([StandingRecord(team_id=1)])) == []
