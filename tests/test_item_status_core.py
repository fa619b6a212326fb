"""Tests for the item status state machine and order roll-up."""

import itertools

import pytest

from app.core.exceptions import InvalidTransitionError
from app.models.enums.item_status import ReceiptItemStatus as S, OrderStatus
from app.services.kitchen.item_status_core import transition, roll_up, STATUS_ORDER
from app.services.kitchen.inflight import InFlightItems


class TestTransition:
    def test_forward(self):
        assert transition(S.pending, S.preparing) == S.preparing

    def test_skip_ahead(self):
        assert transition(S.pending, S.done) == S.done

    def test_same_status_is_noop(self):
        assert transition(S.preparing, S.preparing) == S.preparing

    def test_backward_fails(self):
        with pytest.raises(InvalidTransitionError) as exc:
            transition(S.ready, S.pending)
        assert exc.value.details == {"current": "ready", "requested": "pending"}

    def test_every_pair(self):
        for i, j in itertools.product(range(len(STATUS_ORDER)), repeat=2):
            current, requested = STATUS_ORDER[i], STATUS_ORDER[j]
            if j < i:
                with pytest.raises(InvalidTransitionError):
                    transition(current, requested)
            else:
                assert transition(current, requested) == requested


class TestRollUp:
    @pytest.mark.parametrize(
        "statuses, expected",
        [
            ([], OrderStatus.pending),
            ([S.pending, S.pending], OrderStatus.pending),
            ([S.pending, S.preparing], OrderStatus.preparing),
            ([S.pending, S.ready], OrderStatus.preparing),
            ([S.pending, S.done], OrderStatus.preparing),
            ([S.ready, S.done], OrderStatus.ready),
            ([S.ready, S.ready], OrderStatus.ready),
            ([S.done, S.done], OrderStatus.done),
        ],
    )
    def test_roll_up(self, statuses, expected):
        assert roll_up(statuses) == expected

    def test_completed_overrides_everything(self):
        assert roll_up([S.pending], completed=True) == OrderStatus.completed
        assert roll_up([], completed=True) == OrderStatus.completed

    def test_order_independent(self):
        statuses = [S.pending, S.ready, S.done, S.preparing]
        results = {roll_up(p) for p in itertools.permutations(statuses)}
        assert results == {OrderStatus.preparing}

    def test_accepts_generators(self):
        assert roll_up(s for s in (S.done, S.done)) == OrderStatus.done


class TestInFlightItems:
    def test_claim_once(self):
        registry = InFlightItems()
        assert registry.claim(5)
        assert not registry.claim(5)
        registry.release(5)
        assert registry.claim(5)

    def test_hold_releases_on_error(self):
        registry = InFlightItems()
        with pytest.raises(RuntimeError):
            with registry.hold(3) as claimed:
                assert claimed
                assert 3 in registry
                raise RuntimeError("boom")
        assert 3 not in registry

    def test_nested_hold_does_not_release_owner_claim(self):
        registry = InFlightItems()
        with registry.hold(3) as outer:
            with registry.hold(3) as inner:
                assert outer and not inner
            assert 3 in registry
        assert 3 not in registry
