"""
Debt simplification.

Turns a zero-sum set of net balances into the list of transfers that
settles everyone, using greedy extremes matching:

    1. Split members into creditors (> 0) and debtors (< 0); drop zeros.
    2. Take the largest creditor and the largest debtor. Ties go to the
       smaller member ID.
    3. Emit ``debtor -> creditor`` for ``min(credit, |debt|)``.
    4. Reduce both; whoever reaches zero leaves. Repeat.

Each step settles at least one party, so N non-zero balances need at most
N - 1 transfers. Both sides live in heaps, giving O(n log n).
"""

import heapq
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Mapping

from .balances import assert_zero_sum


@dataclass(frozen=True)
class SuggestedTransfer:
    """A recommended payment. Recomputed on every request, never stored."""
    from_id: Hashable
    to_id: Hashable
    amount: int


def simplify_debts(balances: Mapping[Hashable, int]) -> List[SuggestedTransfer]:
    """
    Compute the suggested transfers that bring every balance to zero.

    Output order is deterministic for a given input: member IDs must be
    mutually comparable (all UUIDs, all strings, ...).

    Raises:
        LedgerConsistencyError: if balances don't sum to zero.
    """
    assert_zero_sum(balances)

    # heapq is a min-heap: negate magnitudes so the largest pops first,
    # the member ID breaks ties in ascending order.
    creditors = [(-amount, member_id) for member_id, amount in balances.items() if amount > 0]
    debtors = [(amount, member_id) for member_id, amount in balances.items() if amount < 0]
    heapq.heapify(creditors)
    heapq.heapify(debtors)

    transfers: List[SuggestedTransfer] = []
    while creditors and debtors:
        neg_credit, creditor_id = heapq.heappop(creditors)
        neg_debt, debtor_id = heapq.heappop(debtors)
        credit, debt = -neg_credit, -neg_debt

        amount = min(credit, debt)
        transfers.append(SuggestedTransfer(debtor_id, creditor_id, amount))

        if credit > amount:
            heapq.heappush(creditors, (-(credit - amount), creditor_id))
        if debt > amount:
            heapq.heappush(debtors, (-(debt - amount), debtor_id))

    return transfers


def apply_transfers(
    balances: Mapping[Hashable, int],
    transfers: Iterable[SuggestedTransfer],
) -> Dict[Hashable, int]:
    """Return the balances that remain after every transfer is paid."""
    result = dict(balances)
    for transfer in transfers:
        result[transfer.from_id] = result.get(transfer.from_id, 0) + transfer.amount
        result[transfer.to_id] = result.get(transfer.to_id, 0) - transfer.amount
    return result
