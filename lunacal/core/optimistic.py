"""
Optimistic update helper: apply(tentative) -> commit(confirmed) | rollback().
"""
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class OptimisticState(str, Enum):
    IDLE = "idle"
    APPLIED = "applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Optimistic(Generic[T]):
    """
    Tracks one optimistic change to a value.

    The value given at construction is kept verbatim; ``rollback`` hands it
    back unchanged so the caller can restore it.
    """

    def __init__(self, original: T):
        self.original = original
        self.current = original
        self.state = OptimisticState.IDLE

    def apply(self, tentative: T) -> T:
        if self.state != OptimisticState.IDLE:
            raise RuntimeError(f"Cannot apply an optimistic update in state {self.state.value}")
        self.current = tentative
        self.state = OptimisticState.APPLIED
        return tentative

    def commit(self, confirmed: T) -> T:
        if self.state != OptimisticState.APPLIED:
            raise RuntimeError(f"Cannot commit an optimistic update in state {self.state.value}")
        self.current = confirmed
        self.state = OptimisticState.COMMITTED
        return confirmed

    def rollback(self) -> T:
        if self.state == OptimisticState.COMMITTED:
            raise RuntimeError("Cannot roll back a committed update")
        self.current = self.original
        self.state = OptimisticState.ROLLED_BACK
        return self.original

    @property
    def pending(self) -> bool:
        return self.state == OptimisticState.APPLIED
