"""
Player tournament statistics.

Per-match performances accumulate into one PlayerTournamentStat row per
(tournament, player). Derived figures are recomputed after every
accumulation so they are never stale.
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional

from tournament_app.models.match import MATCH_ABANDONED, MATCH_COMPLETED, MATCH_LIVE, MATCH_SCHEDULED
from tournament_app.services.score_parser import add_overs, decimal_overs, overs_to_balls

FIFTY = 50
HUNDRED = 100

# Minimums for rate leaderboards
MIN_MATCHES_FOR_AVERAGE = 3
MIN_RUNS_FOR_STRIKE_RATE = 100
MIN_OVERS_FOR_ECONOMY = 10

# MVP weights
MVP_WICKET = 20
MVP_CATCH = 10
MVP_RUN_OUT = 15

_COUNTERS = ("runs", "balls_faced", "fours", "sixes", "wickets", "runs_conceded", "catches", "run_outs", "stumpings")


def accumulate(stat: Dict, performance: Dict) -> Dict:
    """
    Add one match performance to a stat dict and return the updated copy.

    Both arguments are plain field dicts (model_dump of the rows).
    """
    updated = dict(stat)
    updated["matches"] = stat.get("matches", 0) + 1
    for name in _COUNTERS:
        updated[name] = stat.get(name, 0) + performance.get(name, 0)
    updated["overs_bowled"] = add_overs(stat.get("overs_bowled", "0"), performance.get("overs_bowled", "0"))

    innings_runs = performance.get("runs", 0)
    if innings_runs >= HUNDRED:
        updated["hundreds"] = stat.get("hundreds", 0) + 1
    elif innings_runs >= FIFTY:
        updated["fifties"] = stat.get("fifties", 0) + 1
    updated["highest_score"] = max(stat.get("highest_score", 0), innings_runs)

    updated.update(derived_figures(updated))
    return updated


def derived_figures(stat: Dict) -> Dict[str, float]:
    """batting_average = runs / matches, strike_rate per 100 balls, economy per over."""
    matches = stat.get("matches", 0)
    balls_faced = stat.get("balls_faced", 0)
    bowled_balls = overs_to_balls(stat.get("overs_bowled", "0"))
    return {
        "batting_average": round(stat.get("runs", 0) / matches, 2) if matches else 0.0,
        "strike_rate": round(stat.get("runs", 0) / balls_faced * 100, 2) if balls_faced else 0.0,
        "economy_rate": round(stat.get("runs_conceded", 0) / decimal_overs(bowled_balls), 2) if bowled_balls else 0.0,
    }


def mvp_score(stat) -> int:
    return stat.runs + MVP_WICKET * stat.wickets + MVP_CATCH * stat.catches + MVP_RUN_OUT * stat.run_outs


def _fielding(stat) -> int:
    return stat.catches + stat.run_outs + stat.stumpings


# category -> (sort value, descending, eligibility)
_CATEGORIES = {
    "runs": (lambda s: s.runs, True, None),
    "wickets": (lambda s: s.wickets, True, None),
    "batting_average": (lambda s: s.batting_average, True, lambda s: s.matches >= MIN_MATCHES_FOR_AVERAGE),
    "strike_rate": (lambda s: s.strike_rate, True, lambda s: s.runs >= MIN_RUNS_FOR_STRIKE_RATE),
    "economy_rate": (
        lambda s: s.economy_rate,
        False,
        lambda s: overs_to_balls(s.overs_bowled) >= MIN_OVERS_FOR_ECONOMY * 6,
    ),
    "sixes": (lambda s: s.sixes, True, None),
    "fours": (lambda s: s.fours, True, None),
    "fielding": (_fielding, True, None),
    "mvp": (mvp_score, True, None),
}
_ALIASES = {
    "orange_cap": "runs",
    "purple_cap": "wickets",
    "catches": "fielding",
    "allrounder": "mvp",
}
LEADERBOARD_CATEGORIES = tuple(_CATEGORIES) + tuple(_ALIASES)


def resolve_category(category: Optional[str]) -> str:
    category = (category or "runs").lower()
    category = _ALIASES.get(category, category)
    return category if category in _CATEGORIES else "runs"


def _ranked(stats: Iterable, category: str) -> List:
    value_of, descending, eligible = _CATEGORIES[category]
    pool = [s for s in stats if eligible is None or eligible(s)]
    pool.sort(key=lambda s: (-value_of(s) if descending else value_of(s), s.user_id))
    return pool


def top_performers(stats: Iterable, category: str = "runs", limit: int = 10) -> List[Dict]:
    """
    Leaderboard for a category. Unknown categories fall back to runs.

    Returns dicts: rank (1-based), user_id, team_id, player_name, value, matches.
    """
    key = resolve_category(category)
    value_of = _CATEGORIES[key][0]
    return [
        {
            "rank": i + 1,
            "user_id": s.user_id,
            "team_id": s.team_id,
            "player_name": s.player_name,
            "value": value_of(s),
            "matches": s.matches,
        }
        for i, s in enumerate(_ranked(stats, key)[:limit])
    ]


def _holder(stats: List, category: str, figures) -> Optional[Dict]:
    ranked = _ranked(stats, category)
    if not ranked:
        return None
    leader = ranked[0]
    return dict({"user_id": leader.user_id, "team_id": leader.team_id, "player_name": leader.player_name}, **figures(leader))


def tournament_summary(stats: Iterable, links: Iterable) -> Dict:
    """
    Tournament-wide totals: match counts by status, runs, wickets and
    boundaries, plus the orange cap, purple cap and MVP holders.
    """
    stats = list(stats)
    statuses = Counter(link.status for link in links)
    fours = sum(s.fours for s in stats)
    sixes = sum(s.sixes for s in stats)
    return {
        "total_matches": sum(statuses.values()),
        "completed_matches": statuses[MATCH_COMPLETED],
        "upcoming_matches": statuses[MATCH_SCHEDULED],
        "live_matches": statuses[MATCH_LIVE],
        "abandoned_matches": statuses[MATCH_ABANDONED],
        "total_runs": sum(s.runs for s in stats),
        "total_wickets": sum(s.wickets for s in stats),
        "boundaries": {"fours": fours, "sixes": sixes, "total": fours + sixes},
        "orange_cap": _holder(
            stats,
            "runs",
            lambda s: {
                "runs": s.runs,
                "matches": s.matches,
                "batting_average": s.batting_average,
                "strike_rate": s.strike_rate,
            },
        ),
        "purple_cap": _holder(
            stats,
            "wickets",
            lambda s: {"wickets": s.wickets, "matches": s.matches, "economy_rate": s.economy_rate},
        ),
        "mvp": _holder(
            stats,
            "mvp",
            lambda s: {"score": mvp_score(s), "runs": s.runs, "wickets": s.wickets, "catches": s.catches},
        ),
    }
