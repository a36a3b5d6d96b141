"""
Balance computation service.

Loads one group's records from the database into engine records and runs
the ledger reader, balance calculator and debt simplifier over them.
Nothing is cached: every call recomputes from the stored records.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List
from uuid import UUID

from apps.accounts.models import User
from apps.expenses.models import ExpenseRecord, SplitItem
from apps.groups.models import Group
from apps.groups.services import (
    get_group_by_id,
    get_member_ids,
    get_memberships_by_group,
    get_user_groups,
    require_membership,
)
from apps.settlements.engine import (
    LedgerExpense,
    LedgerSettlement,
    LedgerSplit,
    MemberTotals,
    ResolvedTransfer,
    SettlementStatus,
    SuggestedTransfer,
    aggregate_global,
    calculate_balances,
    expense_totals,
    read_contributions,
    simplify_debts,
)
from apps.settlements.models import SettlementRecord


logger = logging.getLogger(__name__)


@dataclass
class GroupLedger:
    """Read model of one group: members in membership order plus its records."""
    group_id: UUID
    member_ids: List[UUID]
    expenses: List[LedgerExpense]
    settlements: List[LedgerSettlement]


@dataclass
class GroupBalances:
    group_id: UUID
    balances: Dict[UUID, int]
    transfers: List[SuggestedTransfer]
    totals: Dict[UUID, MemberTotals] = field(default_factory=dict)
    total_spent: int = 0


@dataclass
class GlobalBalances:
    balances: Dict[UUID, int]
    transfers: List[ResolvedTransfer]
    groups: List[Group] = field(default_factory=list)


def load_group_ledger(group_id: UUID) -> GroupLedger:
    """
    Load a group's members, expenses (with splits) and settlements.

    Only settlements whose status counts toward balances are loaded;
    pending and cancelled records never move a balance.
    """
    member_ids = get_member_ids(group_id=group_id)

    splits_by_expense: Dict[UUID, List[LedgerSplit]] = {}
    split_rows = (
        SplitItem.objects
        .filter(expense__group_id=group_id)
        .order_by('expense_id', 'position')
        .values_list('expense_id', 'user_id', 'owed_amount')
    )
    for expense_id, user_id, owed_amount in split_rows:
        splits_by_expense.setdefault(expense_id, []).append(
            LedgerSplit(member_id=user_id, owed_amount=owed_amount)
        )

    expenses = [
        LedgerExpense(
            id=expense_id,
            payer_id=payer_id,
            amount=amount,
            splits=tuple(splits_by_expense.get(expense_id, ())),
        )
        for expense_id, payer_id, amount in (
            ExpenseRecord.objects
            .filter(group_id=group_id)
            .order_by('created_at', 'id')
            .values_list('id', 'paid_by_id', 'amount')
        )
    ]

    settlements = [
        LedgerSettlement(
            id=settlement_id,
            from_id=from_id,
            to_id=to_id,
            amount=amount,
            status=SettlementStatus(status),
        )
        for settlement_id, from_id, to_id, amount, status in (
            SettlementRecord.objects
            .filter(group_id=group_id, status__in=SettlementStatus.counted())
            .order_by('created_at', 'id')
            .values_list('id', 'from_user_id', 'to_user_id', 'amount', 'status')
        )
    ]

    return GroupLedger(
        group_id=group_id,
        member_ids=member_ids,
        expenses=expenses,
        settlements=settlements,
    )


def _contributions_for(ledger: GroupLedger):
    return read_contributions(
        ledger.member_ids,
        expenses=ledger.expenses,
        settlements=ledger.settlements,
    )


def _balances_for(ledger: GroupLedger) -> Dict[UUID, int]:
    return calculate_balances(_contributions_for(ledger), member_ids=ledger.member_ids)


def compute_group_balances(*, group_id: UUID, user: User) -> GroupBalances:
    """
    Net balances and suggested transfers for one group.

    Raises:
        GroupNotFoundError: If the group doesn't exist
        NotMemberError: If user is not a member of the group
        LedgerConsistencyError: If stored records contradict each other
    """
    group = get_group_by_id(group_id=group_id)
    require_membership(group=group, user=user)

    ledger = load_group_ledger(group.id)
    contributions = _contributions_for(ledger)
    balances = calculate_balances(contributions, member_ids=ledger.member_ids)
    transfers = simplify_debts(balances)
    totals = expense_totals(contributions, member_ids=ledger.member_ids)

    logger.debug(
        "Computed balances for group %s: %s members, %s transfers",
        group.id, len(balances), len(transfers),
    )
    return GroupBalances(
        group_id=group.id,
        balances=balances,
        transfers=transfers,
        totals=totals,
        total_spent=sum(expense.amount for expense in ledger.expenses),
    )


def compute_global_balances(*, user: User) -> GlobalBalances:
    """
    Cross-group view over every group the user belongs to.

    Only debts between ``user`` and their counterparts are included. What
    the user owes a counterpart, or is owed by them, is netted across every
    group the two share into one transfer, which names the shared group it
    should be recorded in.
    """
    groups = list(get_user_groups(user=user))
    group_ids = [group.id for group in groups]

    group_balances = {
        group_id: _balances_for(load_group_ledger(group_id))
        for group_id in group_ids
    }
    memberships = get_memberships_by_group(group_ids=group_ids)
    view = aggregate_global(group_balances, user.id, memberships)

    logger.debug(
        "Computed global balances for user %s over %s groups: %s transfers",
        user.id, len(groups), len(view.transfers),
    )
    return GlobalBalances(balances=view.balances, transfers=view.transfers, groups=groups)
