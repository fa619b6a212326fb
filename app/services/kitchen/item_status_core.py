from typing import Iterable

from app.core.exceptions import InvalidTransitionError
from app.models.enums.item_status import ReceiptItemStatus, OrderStatus


STATUS_ORDER = (
    ReceiptItemStatus.pending,
    ReceiptItemStatus.preparing,
    ReceiptItemStatus.ready,
    ReceiptItemStatus.done,
)

_RANK = {status: index for index, status in enumerate(STATUS_ORDER)}


def transition(
    current: ReceiptItemStatus,
    requested: ReceiptItemStatus,
) -> ReceiptItemStatus:
    """
    Forward-only. Skipping ahead is fine, repeating the current status is a
    no-op (duplicate submissions), going back raises InvalidTransitionError.
    """
    if _RANK[requested] < _RANK[current]:
        raise InvalidTransitionError(current, requested)
    return requested


def roll_up(
    statuses: Iterable[ReceiptItemStatus],
    completed: bool = False,
) -> OrderStatus:
    if completed:
        return OrderStatus.completed

    statuses = list(statuses)
    if not statuses:
        return OrderStatus.pending

    if all(s == ReceiptItemStatus.done for s in statuses):
        return OrderStatus.done

    if all(s in (ReceiptItemStatus.ready, ReceiptItemStatus.done) for s in statuses):
        return OrderStatus.ready

    if any(_RANK[s] >= _RANK[ReceiptItemStatus.preparing] for s in statuses):
        return OrderStatus.preparing

    return OrderStatus.pending
