"""
Tests for the standings engine: result application, NRR, ranking,
qualification flags and form guide.
"""

import pytest

from tournament_app.exceptions import ConfigurationError, StateError
from tournament_app.services.standings_engine import (
    MatchResult,
    ScoringRules,
    StandingRecord,
    apply_qualification,
    apply_result,
    classify_result,
    form_guide,
    head_to_head,
    net_run_rate,
    rank_by_group,
    rank_standings,
    replay_results,
)

RULES = ScoringRules()


def _completed(home=1, away=2, result="home_win", home_score=None, away_score=None, match_id=1):
    return MatchResult(
        home_team_id=home,
        away_team_id=away,
        status="completed",
        result=result,
        home_score=home_score,
        away_score=away_score,
        match_id=match_id,
    )


class TestApplyResult:
    def test_home_win_updates_only_home_won_and_points(self):
        match = _completed(result="home_win")
        home = apply_result(StandingRecord(team_id=1), match, RULES)
        away = apply_result(StandingRecord(team_id=2), match, RULES)

        assert (home.played, home.won, home.lost, home.points) == (1, 1, 0, 2)
        assert (away.played, away.won, away.lost, away.points) == (1, 0, 1, 0)

    def test_input_record_is_not_mutated(self):
        original = StandingRecord(team_id=1)
        apply_result(original, _completed(), RULES)
        assert original.played == 0

    def test_runs_and_overs_accumulate(self):
        match = _completed(home_score="150/6 (20.0)", away_score="90/10 (18.4)")
        home = apply_result(StandingRecord(team_id=1), match, RULES)

        assert (home.runs_for, home.overs_for) == (150, "20.0")
        assert (home.runs_against, home.overs_against) == (90, "18.4")
        assert home.net_run_rate == pytest.approx(2.679)

    def test_overs_sum_in_ball_arithmetic(self):
        first = _completed(home_score="100/2 (10.4)", away_score="99/9 (20)")
        second = _completed(home_score="120/5 (9.2)", away_score="119/8 (20)", match_id=2)
        record = apply_result(apply_result(StandingRecord(team_id=1), first, RULES), second, RULES)
        assert record.overs_for == "20.0"

    def test_all_out_counts_full_quota_when_enabled(self):
        rules = ScoringRules(all_out_counts_full_overs=True)
        match = _completed(home_score="150/6 (20.0)", away_score="90/10 (18.4)")
        home = apply_result(StandingRecord(team_id=1), match, rules)

        assert home.overs_against == "20.0"
        assert home.net_run_rate == pytest.approx(3.0)

    def test_no_result_adds_points_but_no_runs(self):
        match = _completed(result="no_result", home_score="40/1 (5.0)", away_score=None)
        record = apply_result(StandingRecord(team_id=2), match, RULES)

        assert (record.played, record.no_result, record.points) == (1, 1, 1)
        assert (record.runs_for, record.runs_against, record.overs_for) == (0, 0, "0")

    def test_abandoned_status_is_no_result(self):
        match = MatchResult(home_team_id=1, away_team_id=2, status="abandoned")
        assert classify_result(match) == "no_result"

    def test_tie_points(self):
        record = apply_result(StandingRecord(team_id=1), _completed(result="tie"), RULES)
        assert (record.tied, record.points) == (1, 1)

    def test_custom_points_table(self):
        rules = ScoringRules(points_per_win=4, points_per_loss=1)
        match = _completed(result="away_win")
        assert apply_result(StandingRecord(team_id=1), match, rules).points == 1
        assert apply_result(StandingRecord(team_id=2), match, rules).points == 4

    def test_missing_result_compares_runs(self):
        match = _completed(result=None, home_score="120/9 (20)", away_score="121/3 (15.2)")
        assert classify_result(match) == "loss"

    def test_rejects_incomplete_match(self):
        match = MatchResult(home_team_id=1, away_team_id=2, status="live")
        with pytest.raises(StateError):
            apply_result(StandingRecord(team_id=1), match, RULES)

    def test_rejects_missing_team(self):
        match = MatchResult(home_team_id=1, away_team_id=None, status="completed", result="home_win")
        with pytest.raises(StateError):
            apply_result(StandingRecord(team_id=1), match, RULES)

    def test_rejects_team_not_in_match(self):
        with pytest.raises(StateError):
            apply_result(StandingRecord(team_id=9), _completed(), RULES)


class TestNetRunRate:
    def test_zero_overs_side_contributes_zero(self):
        assert net_run_rate(100, 0, 60, 60) == pytest.approx(-6.0)
        assert net_run_rate(0, 0, 0, 0) == 0.0

    def test_rounded_to_three_places(self):
        assert net_run_rate(100, 120, 0, 0) == 5.0
        assert net_run_rate(101, 119, 0, 0) == pytest.approx(5.092)


class TestRanking:
    def test_points_then_nrr_then_wins_then_team_id(self):
        records = [
            StandingRecord(team_id=1, points=4, net_run_rate=0.5, won=2),
            StandingRecord(team_id=2, points=6, net_run_rate=-1.0, won=3),
            StandingRecord(team_id=3, points=4, net_run_rate=1.2, won=2),
            StandingRecord(team_id=4, points=4, net_run_rate=0.5, won=1),
            StandingRecord(team_id=5, points=4, net_run_rate=0.5, won=2),
        ]
        ranked = rank_standings(records)

        assert [r.team_id for r in ranked] == [2, 3, 1, 5, 4]
        assert [r.position for r in ranked] == [1, 2, 3, 4, 5]

    def test_nrr_compared_at_three_decimal_places(self):
        ahead = rank_standings(
            [
                StandingRecord(team_id=1, points=4, net_run_rate=0.500, won=2),
                StandingRecord(team_id=2, points=4, net_run_rate=0.501, won=1),
            ]
        )
        level = rank_standings(
            [
                StandingRecord(team_id=1, points=4, net_run_rate=0.5004, won=1),
                StandingRecord(team_id=2, points=4, net_run_rate=0.5, won=2),
            ]
        )

        assert [r.team_id for r in ahead] == [2, 1]
        # Equal at three places, so wins decide
        assert [r.team_id for r in level] == [2, 1]

    def test_idempotent(self):
        records = [StandingRecord(team_id=i, points=(i % 3) * 2) for i in range(1, 7)]
        once = rank_standings(records)
        assert rank_standings(list(reversed(once))) == once

    def test_rank_by_group_positions_restart(self):
        records = [
            StandingRecord(team_id=1, group_name="A", points=2),
            StandingRecord(team_id=2, group_name="A", points=0),
            StandingRecord(team_id=3, group_name="B", points=0),
            StandingRecord(team_id=4, group_name="B", points=2),
        ]
        tables = rank_by_group(records)

        assert [r.team_id for r in tables["A"]] == [1, 2]
        assert [(r.team_id, r.position) for r in tables["B"]] == [(4, 1), (3, 2)]


class TestQualification:
    def test_top_spots_qualify_when_done(self):
        ranked = rank_standings([StandingRecord(team_id=i, points=10 - i) for i in range(1, 7)])
        flagged = apply_qualification(ranked, remaining_matches={}, points_per_win=2, spots=4)

        assert [r.qualified for r in flagged] == [True, True, True, True, False, False]
        assert [r.eliminated for r in flagged] == [False, False, False, False, True, True]

    def test_not_qualified_with_matches_left(self):
        ranked = rank_standings([StandingRecord(team_id=i, points=10 - i) for i in range(1, 7)])
        flagged = apply_qualification(ranked, {1: 1, 6: 2}, points_per_win=2, spots=4)

        assert not flagged[0].qualified
        # Team 6 has 4 points and can reach 8 >= 4th place's 6
        assert not flagged[5].eliminated
        # Team 5 has 5 points and no games left
        assert flagged[4].eliminated


class TestReplayAndForm:
    def test_replay_rebuilds_from_scratch(self):
        stale = [StandingRecord(team_id=1, played=5, points=10), StandingRecord(team_id=2, played=5)]
        matches = [_completed(result="home_win"), MatchResult(home_team_id=1, away_team_id=2, status="scheduled")]
        records = {r.team_id: r for r in replay_results(stale, matches, RULES)}

        assert (records[1].played, records[1].points) == (1, 2)
        assert (records[2].played, records[2].lost) == (1, 1)

    def test_form_guide_recent_first(self):
        matches = [
            _completed(result="away_win", match_id=5),
            _completed(result="tie", match_id=4),
            MatchResult(home_team_id=1, away_team_id=2, status="abandoned", match_id=3),
            _completed(result="home_win", match_id=2),
            _completed(home=3, away=4, match_id=1),
        ]
        assert form_guide(1, matches) == ["L", "T", "N", "W"]
        assert form_guide(2, matches, limit=2) == ["W", "T"]


class TestHeadToHead:
    def test_wins_ties_and_no_results_from_either_side(self):
        matches = [
            _completed(result="home_win", home_score="160/5 (20)", away_score="140/9 (20)", match_id=1),
            _completed(home=2, away=1, result="home_win", home_score="181/3 (19.2)", away_score="178/6 (20)", match_id=2),
            _completed(result="tie", home_score="150/7 (20)", away_score="150/9 (20)", match_id=3),
            MatchResult(home_team_id=2, away_team_id=1, status="abandoned", match_id=4),
        ]
        record = head_to_head(1, 2, matches)

        assert (record["matches"], record["ties"], record["no_results"]) == (4, 1, 1)
        assert record["team1"] == {"team_id": 1, "wins": 1, "highest_score": 178, "lowest_score": 150}
        assert record["team2"] == {"team_id": 2, "wins": 1, "highest_score": 181, "lowest_score": 140}

    def test_ignores_other_pairs_and_unfinished_meetings(self):
        matches = [
            _completed(home=1, away=3, match_id=1),
            MatchResult(home_team_id=1, away_team_id=2, status="scheduled", match_id=2),
            MatchResult(home_team_id=None, away_team_id=None, status="scheduled", match_id=3),
            _completed(result="away_win", match_id=4),
        ]
        record = head_to_head(1, 2, matches)

        assert record["matches"] == 1
        assert (record["team1"]["wins"], record["team2"]["wins"]) == (0, 1)
        assert record["team1"]["highest_score"] is None

    def test_same_team_rejected(self):
        with pytest.raises(ConfigurationError):
            head_to_head(3, 3, [])
