"""
Fixture Generator

Builds the ordered fixture list for a tournament:
1. League: circle-method round robin (optionally double)
2. Knockout: seeded bracket, byes auto-advance into round 2
3. Group + knockout: shuffled groups, per-group round robin, cross-group knockout
4. IPL-style: double round-robin league + Qualifier 1 / Eliminator / Qualifier 2 / Final

Pure with respect to external state. The only randomness (group shuffle) comes
from the injected random.Random, so a seeded rng reproduces the same draw.
"""

import logging
import random
import string
from typing import Dict, List, Optional, Sequence

from tournament_app.exceptions import ConfigurationError
from tournament_app.services.bracket_math import (
    bracket_size,
    cross_group_pairings,
    first_round_pairings,
    round_count,
    round_name,
    round_robin_pairs,
)
from tournament_app.services.fixture_types import (
    STAGE_ELIMINATOR,
    STAGE_FINAL,
    STAGE_GROUP,
    STAGE_LEAGUE,
    STAGE_QUALIFIER_1,
    STAGE_QUALIFIER_2,
    Fixture,
    GenerationOptions,
    Slot,
    league_position_label,
    loser_label,
    winner_label,
)

logger = logging.getLogger(__name__)

FORMAT_LEAGUE = "league"
FORMAT_KNOCKOUT = "knockout"
FORMAT_GROUP_STAGE_KNOCKOUT = "group_stage_knockout"
FORMAT_IPL = "ipl"

IPL_MIN_TEAMS = 4
MAX_GROUPS = 8

# ============================================================================
# Result Models
# ============================================================================


class GenerationWarning:
    """Non-fatal condition noticed during generation"""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class GenerationResult:
    """Fixtures plus the side information persistence needs"""

    def __init__(self, tournament_format: str):
        self.format = tournament_format
        self.fixtures: List[Fixture] = []
        self.groups: Dict[str, List[int]] = {}
        self.auto_advanced: List[int] = []  # team ids that skipped round 1 on a bye
        self.warnings: List[GenerationWarning] = []

    def to_dict(self):
        return {
            "format": self.format,
            "fixture_count": len(self.fixtures),
            "groups": self.groups,
            "auto_advanced": self.auto_advanced,
            "warnings": [w.to_dict() for w in self.warnings],
        }


class _FixtureBuilder:
    """Appends fixtures with sequential 1-based match numbers and rotating venues"""

    def __init__(self, venue_ids: Sequence[int]):
        self.venue_ids = list(venue_ids)
        self.fixtures: List[Fixture] = []

    @property
    def next_number(self) -> int:
        return len(self.fixtures) + 1

    def add(self, home: Slot, away: Slot, round: int, stage: str, **kwargs) -> Fixture:
        index = len(self.fixtures)
        venue_id = self.venue_ids[index % len(self.venue_ids)] if self.venue_ids else None
        fixture = Fixture(
            home=home,
            away=away,
            round=round,
            match_number=index + 1,
            stage=stage,
            venue_id=venue_id,
            **kwargs,
        )
        self.fixtures.append(fixture)
        return fixture


# ============================================================================
# Public API
# ============================================================================


def generate_fixtures(
    team_ids: Sequence[int],
    tournament_format: str,
    options: Optional[GenerationOptions] = None,
    rng: Optional[random.Random] = None,
    venue_ids: Sequence[int] = (),
) -> GenerationResult:
    """
    Generate the complete fixture list for a tournament.

    Args:
        team_ids: Team ids in seed / registration order
        tournament_format: "league" | "knockout" | "group_stage_knockout"
        options: Double round robin / IPL-style playoff switches
        rng: Source of randomness for group draws
        venue_ids: Venues to rotate across fixtures (may be empty)

    Raises:
        ConfigurationError: fewer than 2 teams, duplicate teams, or IPL-style
            with fewer than 4 teams

    Unknown formats fall back to league with a warning.
    """
    options = options or GenerationOptions()
    rng = rng or random.Random()
    team_ids = list(team_ids)

    if len(team_ids) < 2:
        raise ConfigurationError(f"At least 2 teams are required, got {len(team_ids)}")
    if len(set(team_ids)) != len(team_ids):
        raise ConfigurationError("Duplicate team ids in fixture generation input")

    builder = _FixtureBuilder(venue_ids)

    if options.ipl_format:
        result = GenerationResult(FORMAT_IPL)
        _generate_ipl(builder, team_ids)
    elif tournament_format == FORMAT_KNOCKOUT:
        result = GenerationResult(FORMAT_KNOCKOUT)
        result.auto_advanced = _generate_knockout(builder, team_ids)
    elif tournament_format == FORMAT_GROUP_STAGE_KNOCKOUT:
        result = GenerationResult(FORMAT_GROUP_STAGE_KNOCKOUT)
        result.groups = _generate_group_stage_knockout(builder, team_ids, rng)
    else:
        result = GenerationResult(FORMAT_LEAGUE)
        if tournament_format != FORMAT_LEAGUE:
            message = f"Unknown tournament format {tournament_format!r}; generated a league instead"
            logger.warning(message)
            result.warnings.append(GenerationWarning("UNKNOWN_FORMAT", message))
        _generate_league(builder, team_ids, options.double_round_robin)

    result.fixtures = builder.fixtures
    logger.info(
        "Generated %d fixtures (%s) for %d teams",
        len(result.fixtures),
        result.format,
        len(team_ids),
    )
    return result


def group_count_for(team_count: int) -> int:
    """2 groups up to 8 teams, 4 up to 16, 8 beyond; halved until every group has 2+ teams."""
    if team_count <= 8:
        groups = 2
    elif team_count <= 16:
        groups = 4
    else:
        groups = MAX_GROUPS
    while groups > 1 and team_count // groups < 2:
        groups //= 2
    return groups


def assign_groups(team_ids: Sequence[int], group_count: int, rng: random.Random) -> Dict[str, List[int]]:
    """Shuffle, then deal teams into groups A, B, ... by index modulo group count."""
    names = string.ascii_uppercase[:group_count]
    shuffled = list(team_ids)
    rng.shuffle(shuffled)
    groups: Dict[str, List[int]] = {name: [] for name in names}
    for i, team_id in enumerate(shuffled):
        groups[names[i % group_count]].append(team_id)
    return groups


# ============================================================================
# Format builders
# ============================================================================


def _generate_league(builder: _FixtureBuilder, team_ids: List[int], double_round: bool) -> int:
    """Append league fixtures; returns the last league round number."""
    last_round = 0
    for rnd, home, away in round_robin_pairs(team_ids, double_round=double_round):
        builder.add(Slot.assigned(home), Slot.assigned(away), rnd, STAGE_LEAGUE)
        last_round = max(last_round, rnd)
    return last_round


def _generate_knockout(builder: _FixtureBuilder, team_ids: List[int]) -> List[int]:
    pairings = first_round_pairings(team_ids)
    total_rounds = round_count(bracket_size(len(team_ids)))
    auto_advanced = [p.advancing.team_id for p in pairings if p.advancing is not None and p.advancing.is_assigned]
    if auto_advanced:
        logger.debug("Teams advancing on a bye: %s", auto_advanced)
    entrants = [slot for p in pairings for slot in (p.home, p.away)]
    _build_bracket(builder, entrants, first_round=1, total_rounds=total_rounds)
    return auto_advanced


def _generate_group_stage_knockout(
    builder: _FixtureBuilder, team_ids: List[int], rng: random.Random
) -> Dict[str, List[int]]:
    groups = assign_groups(team_ids, group_count_for(len(team_ids)), rng)

    group_fixtures = []
    for name, members in groups.items():
        for rnd, home, away in round_robin_pairs(members):
            group_fixtures.append((rnd, name, home, away))
    # Interleave groups round by round
    group_fixtures.sort(key=lambda f: (f[0], f[1]))

    last_group_round = 0
    for rnd, name, home, away in group_fixtures:
        builder.add(Slot.assigned(home), Slot.assigned(away), rnd, STAGE_GROUP, group=name)
        last_group_round = max(last_group_round, rnd)

    # Every group has 2+ teams, so two advance from each
    entrants: List[Slot] = []
    for home_label, away_label in cross_group_pairings(list(groups)):
        entrants.extend([Slot.pending(home_label), Slot.pending(away_label)])
    total_rounds = round_count(len(entrants))
    _build_bracket(builder, entrants, first_round=last_group_round + 1, total_rounds=total_rounds)
    return groups


def _generate_ipl(builder: _FixtureBuilder, team_ids: List[int]) -> None:
    if len(team_ids) < IPL_MIN_TEAMS:
        raise ConfigurationError(f"IPL-style playoffs need at least {IPL_MIN_TEAMS} teams, got {len(team_ids)}")

    last_round = _generate_league(builder, team_ids, double_round=True)
    playoff = {"is_playoff": True}

    q1 = builder.add(
        Slot.pending(league_position_label(1)),
        Slot.pending(league_position_label(2)),
        last_round + 1,
        STAGE_QUALIFIER_1,
        playoff_round="Qualifier 1",
        bracket_position=0,
        **playoff,
    )
    eliminator = builder.add(
        Slot.pending(league_position_label(3)),
        Slot.pending(league_position_label(4)),
        last_round + 1,
        STAGE_ELIMINATOR,
        playoff_round="Eliminator",
        is_eliminator=True,
        bracket_position=1,
        **playoff,
    )
    q2 = builder.add(
        Slot.pending(loser_label(q1.match_number)),
        Slot.pending(winner_label(eliminator.match_number)),
        last_round + 2,
        STAGE_QUALIFIER_2,
        playoff_round="Qualifier 2",
        bracket_position=0,
        **playoff,
    )
    builder.add(
        Slot.pending(winner_label(q1.match_number)),
        Slot.pending(winner_label(q2.match_number)),
        last_round + 3,
        STAGE_FINAL,
        playoff_round="Final",
        bracket_position=0,
        **playoff,
    )


def _build_bracket(builder: _FixtureBuilder, entrants: List[Slot], first_round: int, total_rounds: int) -> None:
    """
    Emit every knockout round from a flat list of first-round entrants
    (consecutive pairs meet). A pairing with exactly one bye emits nothing and
    carries the other side straight into its next-round slot; every other
    pairing emits a fixture whose winner is referenced by match number.
    """
    current = entrants
    for offset in range(total_rounds):
        round_number = first_round + offset
        stage = round_name(offset + 1, total_rounds)
        winners: List[Slot] = []
        for position in range(len(current) // 2):
            home, away = current[2 * position], current[2 * position + 1]
            if home.is_bye and away.is_bye:
                winners.append(Slot.bye())
            elif home.is_bye or away.is_bye:
                winners.append(away if home.is_bye else home)
            else:
                fixture = builder.add(home, away, round_number, stage, bracket_position=position)
                winners.append(Slot.pending(winner_label(fixture.match_number)))
        current = winners
