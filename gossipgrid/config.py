"""Tunable settings for navigation and gossip.

Settings are frozen dataclasses passed explicitly to the functions that
need them. ``from_env()`` builds them from environment variables:

    GG_CREATURE_MARGIN: Avoidance radius around visible creatures (int >= 0)
    GG_AVOID_PENALTY: Extra cost of stepping into an avoided cell (float >= 0)
    GG_MAX_EXPANSIONS: A* node budget per search (int >= 1, or "none")
    GG_GOSSIP: Set to "0" to disable broadcast merging
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class NavigationConfig:
    """Settings for avoidance sets and A* search.

    Attributes:
        creature_margin: Cells within this Chebyshev radius of a visible
            creature are soft-avoided.
        avoid_penalty: Extra step cost for entering an avoided cell.
        max_expansions: Node budget per search. Unknown cells count as
            passable, so an unreachable start would otherwise search an
            unbounded plane. None disables the budget.
        blocked_item_names: Item names treated as hard obstacles even when
            passable.
    """

    creature_margin: int = 1
    avoid_penalty: float = 10.0
    max_expansions: int | None = 20_000
    blocked_item_names: tuple[str, ...] = ("Exit",)

    def __post_init__(self):
        if self.creature_margin < 0:
            raise ValueError(f"creature_margin must be >= 0, got {self.creature_margin}")
        if self.avoid_penalty < 0:
            raise ValueError(f"avoid_penalty must be >= 0, got {self.avoid_penalty}")
        if self.max_expansions is not None and self.max_expansions < 1:
            raise ValueError(f"max_expansions must be >= 1, got {self.max_expansions}")

    @classmethod
    def from_env(cls) -> NavigationConfig:
        """Build from ``GG_*`` environment variables, defaulting unset ones."""
        defaults = cls()
        raw_budget = os.environ.get("GG_MAX_EXPANSIONS", "")
        if raw_budget.lower() == "none":
            max_expansions = None
        else:
            max_expansions = _env_int("GG_MAX_EXPANSIONS", defaults.max_expansions)
        return cls(
            creature_margin=_env_int("GG_CREATURE_MARGIN", defaults.creature_margin),
            avoid_penalty=_env_float("GG_AVOID_PENALTY", defaults.avoid_penalty),
            max_expansions=max_expansions,
        )


@dataclass(frozen=True)
class GossipConfig:
    """Settings for the per-turn broadcast merge.

    Attributes:
        enabled: When False, peers' payloads are ignored (own broadcast is
            still cleaned and published).
    """

    enabled: bool = True

    @classmethod
    def from_env(cls) -> GossipConfig:
        return cls(enabled=os.environ.get("GG_GOSSIP", "1") != "0")
