"""
Ledger reader.

Projects expense, split and settlement records of one scope into a flat
list of signed per-member contributions. Works on plain immutable records
so it can be fed from the ORM, fixtures or anything else.

Sign convention: positive means the member is owed money by the group,
negative means the member owes the group.
"""

import logging
from dataclasses import dataclass, field
from typing import Hashable, Iterable, List, Tuple

from django.db.models import TextChoices

from apps.settlements.exceptions import LedgerConsistencyError


logger = logging.getLogger(__name__)

MemberId = Hashable


class SettlementStatus(TextChoices):
    """
    Lifecycle status of a recorded settlement.

    ``pending`` -> ``paid_pending`` -> ``confirmed``; ``pending`` and
    ``paid_pending`` may also move to ``cancelled``.
    """
    PENDING = 'pending', 'Pending'
    PAID_PENDING = 'paid_pending', 'Paid, awaiting confirmation'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'

    @property
    def counts_toward_balance(self):
        """Whether a settlement in this status moves balances."""
        return self in (SettlementStatus.PAID_PENDING, SettlementStatus.CONFIRMED)

    @property
    def is_terminal(self):
        return self in (SettlementStatus.CONFIRMED, SettlementStatus.CANCELLED)

    @classmethod
    def counted(cls):
        return [status for status in cls if status.counts_toward_balance]

    @classmethod
    def open(cls):
        return [status for status in cls if not status.is_terminal]


@dataclass(frozen=True)
class LedgerSplit:
    member_id: MemberId
    owed_amount: int


@dataclass(frozen=True)
class LedgerExpense:
    id: Hashable
    payer_id: MemberId
    amount: int
    splits: Tuple[LedgerSplit, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LedgerSettlement:
    id: Hashable
    from_id: MemberId
    to_id: MemberId
    amount: int
    status: SettlementStatus


@dataclass(frozen=True)
class Contribution:
    """One signed movement of a member's position."""
    member_id: MemberId
    amount: int
    source_kind: str
    source_id: Hashable


def _consistency_error(message, **context):
    logger.error("Ledger consistency error: %s %s", message, context)
    return LedgerConsistencyError(message)


def _expense_contributions(expense: LedgerExpense, members: frozenset) -> List[Contribution]:
    if expense.amount <= 0:
        raise _consistency_error(
            f"Expense {expense.id} has non-positive amount {expense.amount}",
            expense_id=expense.id,
        )
    if expense.payer_id not in members:
        raise _consistency_error(
            f"Expense {expense.id} was paid by {expense.payer_id}, who is not a group member",
            expense_id=expense.id,
            member_id=expense.payer_id,
        )

    contributions = [Contribution(expense.payer_id, expense.amount, 'expense', expense.id)]
    owed_total = 0
    for split in expense.splits:
        if split.member_id not in members:
            raise _consistency_error(
                f"Expense {expense.id} has a split for {split.member_id}, who is not a group member",
                expense_id=expense.id,
                member_id=split.member_id,
            )
        if split.owed_amount < 0:
            raise _consistency_error(
                f"Expense {expense.id} has a negative split for {split.member_id}",
                expense_id=expense.id,
                member_id=split.member_id,
            )
        owed_total += split.owed_amount
        contributions.append(
            Contribution(split.member_id, -split.owed_amount, 'split', expense.id)
        )

    if owed_total != expense.amount:
        raise _consistency_error(
            f"Splits of expense {expense.id} sum to {owed_total}, expected {expense.amount}",
            expense_id=expense.id,
        )
    return contributions


def _settlement_contributions(settlement: LedgerSettlement, members: frozenset) -> List[Contribution]:
    if not SettlementStatus(settlement.status).counts_toward_balance:
        return []
    for member_id in (settlement.from_id, settlement.to_id):
        if member_id not in members:
            raise _consistency_error(
                f"Settlement {settlement.id} involves {member_id}, who is not a group member",
                settlement_id=settlement.id,
                member_id=member_id,
            )
    # The payer's debt shrinks and the receiver's claim shrinks by the same amount.
    return [
        Contribution(settlement.from_id, settlement.amount, 'settlement', settlement.id),
        Contribution(settlement.to_id, -settlement.amount, 'settlement', settlement.id),
    ]


def read_contributions(
    member_ids: Iterable[MemberId],
    expenses: Iterable[LedgerExpense] = (),
    settlements: Iterable[LedgerSettlement] = (),
) -> List[Contribution]:
    """
    Project one scope's records into signed contributions.

    For every expense the payer is credited the full amount and each split
    debits its member. For every settlement whose status counts toward
    balance the payer is credited and the receiver debited.

    An empty scope yields an empty list.

    Raises:
        LedgerConsistencyError: if a record references someone outside
            ``member_ids`` or an expense's splits don't sum to its amount.
    """
    members = frozenset(member_ids)
    contributions: List[Contribution] = []
    for expense in expenses:
        contributions.extend(_expense_contributions(expense, members))
    for settlement in settlements:
        contributions.extend(_settlement_contributions(settlement, members))
    return contributions
