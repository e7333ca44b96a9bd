"""
Bracket math: round-robin pairing, bracket sizing, seeding and round naming.

Pure functions, no I/O. Team ids are plain ints; byes are represented with
Slot.bye() and never with sentinel ids.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from tournament_app.exceptions import ConfigurationError
from tournament_app.services.fixture_types import (
    STAGE_FINAL,
    STAGE_QUARTER_FINAL,
    STAGE_SEMI_FINAL,
    Slot,
    group_position_label,
)

# Internal filler for odd team counts; never leaves this module
_BYE = object()


def round_robin_pairs(team_ids: Sequence[int], double_round: bool = False) -> List[Tuple[int, int, int]]:
    """
    Circle-method round robin.

    Args:
        team_ids: Teams in registration order
        double_round: Append a return leg per pairing with sides swapped

    Returns:
        List of (round, home_team_id, away_team_id), rounds 1-based, ordered
        by round then pairing index.

    Team 0 stays fixed while the others rotate one position per round (last
    position moves to index 1). Odd counts get a bye filler; pairings touching
    it are dropped. Sides swap on every other round so home/away balances out.
    """
    if len(team_ids) < 2:
        raise ConfigurationError("At least 2 teams are required for a round robin")

    teams: List[object] = list(team_ids)
    if len(teams) % 2 == 1:
        teams.append(_BYE)

    n = len(teams)
    rounds_count = n - 1
    half = n // 2

    pairs: List[Tuple[int, int, int]] = []
    for r in range(rounds_count):
        for m in range(half):
            home, away = teams[m], teams[n - 1 - m]
            if home is _BYE or away is _BYE:
                continue
            if r % 2 == 1:
                home, away = away, home
            pairs.append((r + 1, home, away))
        teams = [teams[0], teams[-1]] + teams[1:-1]

    if double_round:
        pairs.extend((rnd + rounds_count, away, home) for rnd, home, away in list(pairs))

    return pairs


def single_round_count(team_count: int) -> int:
    """Rounds in one round-robin cycle (odd counts include the bye round)."""
    return team_count if team_count % 2 == 1 else team_count - 1


def bracket_size(team_count: int) -> int:
    """Smallest power of two >= team_count."""
    if team_count < 2:
        raise ConfigurationError("At least 2 teams are required for a knockout bracket")
    size = 1
    while size < team_count:
        size *= 2
    return size


def bye_count(team_count: int) -> int:
    return bracket_size(team_count) - team_count


def round_count(size: int) -> int:
    """Number of knockout rounds for a bracket of the given power-of-two size."""
    return size.bit_length() - 1


def seed_order(size: int) -> List[int]:
    """
    Standard bracket seeding permutation.

    seed_order(2) = [1, 2]; each seed s of seed_order(size / 2) expands to
    [s, size + 1 - s], so seed_order(8) = [1, 8, 4, 5, 2, 7, 3, 6]. Top seeds
    can only meet in the later rounds.
    """
    if size < 2 or size & (size - 1):
        raise ConfigurationError(f"Bracket size must be a power of two >= 2, got {size}")
    if size == 2:
        return [1, 2]
    order: List[int] = []
    for s in seed_order(size // 2):
        order.extend([s, size + 1 - s])
    return order


def round_name(round_number: int, total_rounds: int) -> str:
    """Stage name counted back from the final: final, semi-final, quarter-final, else round-N."""
    back = total_rounds - round_number
    if back == 0:
        return STAGE_FINAL
    if back == 1:
        return STAGE_SEMI_FINAL
    if back == 2:
        return STAGE_QUARTER_FINAL
    return f"round-{round_number}"


@dataclass(frozen=True)
class SeededPairing:
    position: int  # 0-based index within the round, byes included
    home: Slot
    away: Slot

    @property
    def is_playable(self) -> bool:
        return not (self.home.is_bye or self.away.is_bye)

    @property
    def advancing(self) -> Optional[Slot]:
        """The side that goes through without playing, if exactly one side is a bye."""
        if self.home.is_bye and not self.away.is_bye:
            return self.away
        if self.away.is_bye and not self.home.is_bye:
            return self.home
        return None


def first_round_pairings(team_ids: Sequence[int]) -> List[SeededPairing]:
    """
    Seeded first-round pairings. team_ids are in seed order (index 0 = seed 1).
    Seeds beyond the team count become byes, which always land against the
    top seeds.
    """
    size = bracket_size(len(team_ids))
    order = seed_order(size)

    def slot_for(seed: int) -> Slot:
        if seed <= len(team_ids):
            return Slot.assigned(team_ids[seed - 1])
        return Slot.bye()

    return [
        SeededPairing(position=i, home=slot_for(order[2 * i]), away=slot_for(order[2 * i + 1]))
        for i in range(size // 2)
    ]


def cross_group_pairings(group_names: Sequence[str]) -> List[Tuple[str, str]]:
    """
    First knockout round for top-two finishers of each group.

    Pairs group i winner with group i+1 runner-up in the top half and the
    reverse in the bottom half, so group-mates can only meet in the final:
    2 groups -> [A1 v B2, B1 v A2]; 4 groups -> [A1 v B2, C1 v D2, B1 v A2, D1 v C2].
    A single group plays A1 v A2.
    """
    if len(group_names) == 1:
        g = group_names[0]
        return [(group_position_label(g, 1), group_position_label(g, 2))]
    if len(group_names) % 2:
        raise ConfigurationError("Cross-group pairing needs an even number of groups")

    top: List[Tuple[str, str]] = []
    bottom: List[Tuple[str, str]] = []
    for i in range(0, len(group_names), 2):
        a, b = group_names[i], group_names[i + 1]
        top.append((group_position_label(a, 1), group_position_label(b, 2)))
        bottom.append((group_position_label(b, 1), group_position_label(a, 2)))
    return top + bottom
