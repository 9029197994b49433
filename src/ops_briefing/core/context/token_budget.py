"""Token budget ledger with priority-based overflow handling.

Tracks how much of a fixed token budget is consumed and by which named,
prioritized entries. When a new entry does not fit, ``handle_overflow``
evicts strictly lower-priority entries (lowest first) until it does.

Key Components:
    - BudgetEntry: Ledger record for one admitted section
    - BudgetOverflowError: Raised when a section cannot fit even after eviction
    - TokenBudget: The ledger itself

Usage:
    from ops_briefing.core.context.token_budget import (
        BudgetOverflowError,
        TokenBudget,
    )

    budget = TokenBudget(1000)
    budget.allocate("low", 400, priority=3)
    budget.allocate("med", 400, priority=5)

    try:
        dropped = budget.handle_overflow("high", 300, priority=7)  # ["low"]
        budget.allocate("high", 300, priority=7)
    except BudgetOverflowError as e:
        print(f"{e.section} is short by {e.shortfall} tokens")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetEntry:
    """Bookkeeping record for one admitted section.

    Attributes:
        name: Section name
        tokens: Tokens consumed by the section
        priority: Overflow priority (higher = kept longer)
    """

    name: str
    tokens: int
    priority: int


class BudgetOverflowError(Exception):
    """Raised when a section cannot fit even after evicting lower priorities.

    Attributes:
        section: Name of the rejected section
        shortfall: Tokens still missing after maximal eviction
        evicted: Sections that remain evicted (empty when the ledger rolled
            back its evictions)
    """

    def __init__(
        self,
        section: str,
        shortfall: int,
        evicted: Optional[list[str]] = None,
    ):
        self.section = section
        self.shortfall = shortfall
        self.evicted = list(evicted or [])
        super().__init__(
            f"Cannot fit section '{section}': {shortfall} tokens short "
            f"after evicting all lower-priority sections"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "budget_overflow",
            "section": self.section,
            "shortfall": self.shortfall,
            "evicted": self.evicted,
        }


@dataclass
class TokenBudget:
    """Ledger for a single fixed token budget.

    ``allocate`` is a commit, not a gate: it never checks capacity, so
    callers check ``can_allocate`` first or go through ``handle_overflow``.

    Attributes:
        total: Fixed token capacity
        atomic_overflow: When True (default), a failed ``handle_overflow``
            restores every entry it evicted. When False, evictions stay
            applied and are reported on the raised error.

    Example:
        budget = TokenBudget(4000)
        if budget.can_allocate(1200):
            budget.allocate("work_items", 1200, 10)
        print(budget.remaining())  # 2800
    """

    total: int
    atomic_overflow: bool = True
    _entries: dict[str, BudgetEntry] = field(default_factory=dict, init=False, repr=False)
    _used: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ValueError(f"total must be non-negative, got {self.total}")

    def remaining(self) -> int:
        """Tokens still available (total - used)."""
        return self.total - self._used

    def used(self) -> int:
        """Tokens currently allocated."""
        return self._used

    def can_allocate(self, tokens: int) -> bool:
        """Check whether ``tokens`` more would stay within the budget."""
        if tokens < 0:
            raise ValueError(f"tokens must be non-negative, got {tokens}")
        return self._used + tokens <= self.total

    def allocate(self, name: str, tokens: int, priority: int) -> None:
        """Record an allocation for ``name``.

        Replaces any existing allocation under the same name.

        Raises:
            ValueError: If tokens is negative
        """
        if tokens < 0:
            raise ValueError(f"tokens must be non-negative, got {tokens}")
        if name in self._entries:
            self.release(name)
        self._entries[name] = BudgetEntry(name=name, tokens=tokens, priority=priority)
        self._used += tokens

    def release(self, name: str) -> Optional[BudgetEntry]:
        """Remove an allocation, returning it (None if absent)."""
        entry = self._entries.pop(name, None)
        if entry is not None:
            self._used -= entry.tokens
        return entry

    def has_allocation(self, name: str) -> bool:
        return name in self._entries

    def get_allocation(self, name: str) -> Optional[BudgetEntry]:
        return self._entries.get(name)

    def entries(self) -> list[BudgetEntry]:
        """Current entries in insertion order."""
        return list(self._entries.values())

    def handle_overflow(self, name: str, tokens: int, priority: int) -> list[str]:
        """Make room for a section that does not currently fit.

        Evicts entries with priority strictly lower than ``priority``, lowest
        first (insertion order among ties), until the section fits. The
        section itself is not recorded; on success the caller commits it
        with ``allocate``.

        Args:
            name: Name of the incoming section
            tokens: Tokens the section needs
            priority: Priority of the incoming section

        Returns:
            Names of the evicted sections, in eviction order

        Raises:
            BudgetOverflowError: If the section still does not fit after
                evicting every lower-priority entry
        """
        if tokens < 0:
            raise ValueError(f"tokens must be non-negative, got {tokens}")

        candidates = sorted(
            (e for e in self._entries.values() if e.priority < priority),
            key=lambda e: e.priority,
        )
        snapshot = dict(self._entries) if self.atomic_overflow else None

        evicted: list[str] = []
        for entry in candidates:
            if self.can_allocate(tokens):
                break
            self.release(entry.name)
            evicted.append(entry.name)
            logger.debug(
                f"Evicted section '{entry.name}' (priority={entry.priority}, "
                f"tokens={entry.tokens}) for '{name}' (priority={priority})"
            )

        if not self.can_allocate(tokens):
            shortfall = tokens - self.remaining()
            if snapshot is not None:
                self._restore(snapshot)
                evicted = []
            logger.debug(
                f"Overflow unresolved for '{name}': {shortfall} tokens short"
            )
            raise BudgetOverflowError(section=name, shortfall=shortfall, evicted=evicted)

        return evicted

    def _restore(self, snapshot: dict[str, BudgetEntry]) -> None:
        self._entries = dict(snapshot)
        self._used = sum(e.tokens for e in self._entries.values())

    def reset(self) -> None:
        """Drop every allocation, keeping the same total."""
        self._entries.clear()
        self._used = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "used": self._used,
            "remaining": self.remaining(),
            "entries": [
                {"name": e.name, "tokens": e.tokens, "priority": e.priority}
                for e in self._entries.values()
            ],
        }
