# store.py
# Process-wide mutable state touched by the tools: the watchlist and the
# leave balance.
#
# One store is created at startup and passed explicitly to the executor.
# The lock is held by the registry for the duration of a single tool
# invocation. There is no plan-level transaction: steps of concurrent plans
# may interleave, and nothing is rolled back when a plan aborts.

import threading

from pydantic import BaseModel, Field


class LeaveBalance(BaseModel):
    taken: int = Field(default=0, ge=0)
    remaining: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.taken + self.remaining


class StateStore:
    """
    Watchlist and leave balance shared across requests.

    The watchlist keeps movie ids in insertion order and never holds
    duplicates. The leave balance never goes negative.
    """

    def __init__(self, annual_leave_days: int = 12) -> None:
        self.lock = threading.RLock()
        self._watchlist: dict[str, None] = {}
        self._leave = LeaveBalance(taken=0, remaining=max(0, annual_leave_days))

    # ------------------------------------------------------------------
    # Watchlist
    # ------------------------------------------------------------------

    def add_to_watchlist(self, movie_id: str) -> bool:
        """Returns False when the id was already present."""
        if movie_id in self._watchlist:
            return False
        self._watchlist[movie_id] = None
        return True

    def remove_from_watchlist(self, movie_id: str) -> bool:
        """Returns True only if an entry was actually removed."""
        if movie_id not in self._watchlist:
            return False
        del self._watchlist[movie_id]
        return True

    def watchlist_ids(self) -> list[str]:
        return list(self._watchlist)

    # ------------------------------------------------------------------
    # Leave balance
    # ------------------------------------------------------------------

    def take_leave(self, days: int) -> int:
        """
        Deduct up to `days` from the remaining balance.

        Returns the number of days actually applied. `taken` grows by the
        applied amount only, so taken + remaining is constant.
        """
        applied = min(max(0, days), self._leave.remaining)
        self._leave = LeaveBalance(
            taken=self._leave.taken + applied,
            remaining=self._leave.remaining - applied,
        )
        return applied

    @property
    def leave(self) -> LeaveBalance:
        return self._leave.model_copy()
