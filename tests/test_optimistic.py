import pytest

from lunacal.core.optimistic import Optimistic, OptimisticState


def test_apply_then_commit():
    update = Optimistic((1, 2))
    assert update.apply((1, 3)) == (1, 3)
    assert update.pending
    assert update.commit((1, 4)) == (1, 4)
    assert update.state == OptimisticState.COMMITTED
    assert not update.pending


def test_rollback_returns_original_object():
    original = [1, 2]
    update = Optimistic(original)
    update.apply([9])
    assert update.rollback() is original
    assert update.current is original


def test_invalid_transitions():
    update = Optimistic("a")
    with pytest.raises(RuntimeError):
        update.commit("b")
    update.apply("b")
    with pytest.raises(RuntimeError):
        update.apply("c")
    update.commit("c")
    with pytest.raises(RuntimeError):
        update.rollback()
