import random
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

DRAW_COST = 3

# Ordered by rarity, most common first
CARD_LEVELS = ('NONE', 'F', 'E', 'D', 'C', 'B', 'A', 'S')

DEFAULT_DRAW_TABLE: Tuple[Tuple[str, float], ...] = (
    ('NONE', 0.2),
    ('F', 0.45),
    ('E', 0.7),
    ('D', 0.825),
    ('C', 0.925),
    ('B', 0.975),
    ('A', 0.995),
    ('S', 1.0),
)


class InsufficientCoins(Exception):
    def __init__(self, available: int, cost: int = DRAW_COST):
        super().__init__(f"Not enough coins: {available} available, {cost} needed")
        self.available = available
        self.cost = cost


class LoginRequired(Exception):
    pass


def normalize_level(level) -> Optional[str]:
    """Upper-case a card level; None when it is not a known level."""
    if level is None:
        return None
    value = str(level).strip().upper()
    return value if value in CARD_LEVELS else None


class DrawTable:
    """Cumulative upper bounds mapping a uniform value in [0, 1) to a level.

    The last entry catches everything left over, so its bound only has to
    be reached by the preceding ones.
    """

    def __init__(self, entries: Iterable[Tuple[str, float]] = DEFAULT_DRAW_TABLE):
        self.entries: List[Tuple[str, float]] = [(str(level).upper(), float(bound)) for level, bound in entries]
        if not self.entries:
            raise ValueError('draw table is empty')
        previous = 0.0
        for level, bound in self.entries:
            if level not in CARD_LEVELS:
                raise ValueError(f"unknown card level in draw table: {level}")
            if bound < previous or bound > 1.0:
                raise ValueError(f"draw table bounds must be ascending within [0, 1]: {level}={bound}")
            previous = bound

    def lookup(self, value: float) -> str:
        for level, bound in self.entries[:-1]:
            if value < bound:
                return level
        return self.entries[-1][0]

    @classmethod
    def parse(cls, spec: str) -> 'DrawTable':
        """Build a table from ``"NONE:0.2,F:0.45,...,S:1.0"``; empty means the default."""
        if not spec or not spec.strip():
            return cls()
        entries = []
        for part in spec.split(','):
            part = part.strip()
            if not part:
                continue
            level, sep, bound = part.partition(':')
            if not sep:
                raise ValueError(f"malformed draw table entry: {part!r}")
            entries.append((level.strip(), float(bound)))
        return cls(entries)


def draw_card(table: Optional[DrawTable] = None, rng: Callable[[], float] = random.random) -> str:
    table = table or DrawTable()
    return table.lookup(rng())


def spend_for_draw(available: int, cost: int = DRAW_COST) -> None:
    """Reject a draw the account cannot afford."""
    if available < cost:
        raise InsufficientCoins(available, cost)


def recent_cards(cards: Sequence[str], count: int = 3) -> List[str]:
    if count <= 0:
        return []
    return list(cards or [])[-count:]
