"""Tests for cricket score parsing and overs arithmetic"""

import pytest

from tournament_app.services.score_parser import (
    add_overs,
    balls_to_overs,
    decimal_overs,
    overs_to_balls,
    parse_score,
)


class TestParseScore:
    def test_full_score(self):
        score = parse_score("156/7 (19.4)")
        assert (score.runs, score.wickets, score.balls) == (156, 7, 118)
        assert score.overs == "19.4"

    def test_missing_wickets(self):
        score = parse_score("156 (20)")
        assert (score.runs, score.wickets, score.balls) == (156, 0, 120)

    def test_missing_overs_counts_zero(self):
        score = parse_score("156/7")
        assert score.balls == 0

    def test_all_out(self):
        assert parse_score("90/10 (18.4)").is_all_out

    @pytest.mark.parametrize("raw", [None, "", "abc", "156/7 (19.7)", "156/7 (19.4"])
    def test_invalid_returns_none(self, raw):
        assert parse_score(raw) is None


class TestOversArithmetic:
    def test_overs_to_balls(self):
        assert overs_to_balls("19.4") == 118
        assert overs_to_balls("20") == 120
        assert overs_to_balls("0.5") == 5
        assert overs_to_balls(None) == 0

    def test_rejects_balls_digit_above_five(self):
        with pytest.raises(ValueError):
            overs_to_balls("3.6")

    def test_balls_to_overs(self):
        assert balls_to_overs(118) == "19.4"
        assert balls_to_overs(120) == "20.0"

    def test_round_trip_for_valid_ball_digits(self):
        for balls in range(0, 130):
            assert overs_to_balls(balls_to_overs(balls)) == balls

    def test_add_overs_carries_into_next_over(self):
        assert add_overs("19.4", "0.2") == "20.0"
        assert add_overs("0", "18.4") == "18.4"
        assert add_overs("10.5", "10.5") == "21.4"

    def test_decimal_overs(self):
        assert decimal_overs(112) == pytest.approx(18.6667, abs=1e-4)
