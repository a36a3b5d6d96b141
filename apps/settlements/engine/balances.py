"""Reduce ledger contributions to one net balance per member."""

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Mapping

from apps.settlements.exceptions import LedgerConsistencyError

from .ledger import Contribution


logger = logging.getLogger(__name__)


def assert_zero_sum(balances: Mapping[Hashable, int]) -> None:
    """
    Raises:
        LedgerConsistencyError: if balances don't sum to zero.
    """
    total = sum(balances.values())
    if total != 0:
        logger.error("Balances do not sum to zero (off by %s): %s", total, dict(balances))
        raise LedgerConsistencyError(f"Balances do not sum to zero (off by {total})")


def calculate_balances(
    contributions: Iterable[Contribution],
    member_ids: Iterable[Hashable] = (),
) -> Dict[Hashable, int]:
    """
    Sum contributions into ``{member_id: net balance}``.

    Every ID in ``member_ids`` appears in the result, with 0 if nothing
    touched it. Insertion order follows ``member_ids`` first, then first
    appearance in ``contributions``.

    Raises:
        LedgerConsistencyError: if the result is not zero-sum.
    """
    balances: Dict[Hashable, int] = {member_id: 0 for member_id in member_ids}
    for contribution in contributions:
        balances[contribution.member_id] = (
            balances.get(contribution.member_id, 0) + contribution.amount
        )
    assert_zero_sum(balances)
    return balances


def merge_balances(balance_maps: Iterable[Mapping[Hashable, int]]) -> Dict[Hashable, int]:
    """Add several balance maps member by member."""
    merged: Dict[Hashable, int] = {}
    for balances in balance_maps:
        for member_id, amount in balances.items():
            merged[member_id] = merged.get(member_id, 0) + amount
    assert_zero_sum(merged)
    return merged


@dataclass(frozen=True)
class MemberTotals:
    """What a member paid for the group and their share of it."""
    paid: int = 0
    owed: int = 0


def expense_totals(
    contributions: Iterable[Contribution],
    member_ids: Iterable[Hashable] = (),
) -> Dict[Hashable, MemberTotals]:
    """
    Gross expense totals per member, settlements left out.

    ``paid`` sums the expenses a member paid for, ``owed`` sums their
    splits. Every ID in ``member_ids`` appears in the result.
    """
    paid: Dict[Hashable, int] = {member_id: 0 for member_id in member_ids}
    owed: Dict[Hashable, int] = dict(paid)
    for contribution in contributions:
        if contribution.source_kind == 'expense':
            paid[contribution.member_id] = paid.get(contribution.member_id, 0) + contribution.amount
            owed.setdefault(contribution.member_id, 0)
        elif contribution.source_kind == 'split':
            owed[contribution.member_id] = owed.get(contribution.member_id, 0) - contribution.amount
            paid.setdefault(contribution.member_id, 0)
    return {
        member_id: MemberTotals(paid=paid[member_id], owed=owed[member_id])
        for member_id in paid
    }
