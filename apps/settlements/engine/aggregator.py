"""
Cross-group aggregation.

A member's global view nets what they owe each counterpart, and are owed
by them, across every group the two share. Each counterpart then gets at
most one transfer instead of one per group.

A settlement is always recorded against one group, so each global
transfer is resolved back to a concrete group both members belong to.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from apps.settlements.exceptions import LedgerConsistencyError

from .balances import assert_zero_sum
from .simplifier import SuggestedTransfer, simplify_debts


logger = logging.getLogger(__name__)


PairKey = Tuple[Hashable, Hashable]


@dataclass(frozen=True)
class ResolvedTransfer:
    """A global suggested transfer plus the group it would be recorded in."""
    from_id: Hashable
    to_id: Hashable
    amount: int
    group_id: Hashable


@dataclass
class GlobalView:
    balances: Dict[Hashable, int]
    transfers: List[ResolvedTransfer]
    pairwise: Dict[PairKey, int] = field(default_factory=dict)


def group_pairwise_debts(
    group_balances: Mapping[Hashable, Mapping[Hashable, int]],
) -> Dict[Hashable, List[SuggestedTransfer]]:
    """Per group, the debtor -> creditor edges of that group's simplified transfers."""
    return {
        group_id: simplify_debts(balances)
        for group_id, balances in group_balances.items()
    }


def net_pairwise(
    edges_by_group: Mapping[Hashable, Sequence[SuggestedTransfer]],
) -> Dict[PairKey, int]:
    """
    Net directed debts across groups into one amount per member pair.

    ``A -> B 100`` in one group and ``B -> A 30`` in another become
    ``{(A, B): 70}``. Pairs that cancel out completely are dropped.
    """
    signed: Dict[PairKey, int] = {}
    for edges in edges_by_group.values():
        for edge in edges:
            # Canonical key (low, high); positive means low owes high.
            if edge.from_id < edge.to_id:
                key, amount = (edge.from_id, edge.to_id), edge.amount
            else:
                key, amount = (edge.to_id, edge.from_id), -edge.amount
            signed[key] = signed.get(key, 0) + amount

    netted: Dict[PairKey, int] = {}
    for (low, high), amount in sorted(signed.items()):
        if amount > 0:
            netted[(low, high)] = amount
        elif amount < 0:
            netted[(high, low)] = -amount
    return netted


def pairwise_debts(
    group_balances: Mapping[Hashable, Mapping[Hashable, int]],
) -> Dict[PairKey, int]:
    """Directed debt per member pair, netted across all groups."""
    return net_pairwise(group_pairwise_debts(group_balances))


def balances_from_pairwise(pairwise: Mapping[PairKey, int]) -> Dict[Hashable, int]:
    """Net position of every member implied by directed pairwise debts."""
    balances: Dict[Hashable, int] = {}
    for (debtor_id, creditor_id), amount in pairwise.items():
        balances[debtor_id] = balances.get(debtor_id, 0) - amount
        balances[creditor_id] = balances.get(creditor_id, 0) + amount
    return balances


def resolve_transfer_group(
    transfer: SuggestedTransfer,
    edges_by_group: Mapping[Hashable, Sequence[SuggestedTransfer]],
    memberships: Mapping[Hashable, Sequence[Hashable]],
) -> Hashable:
    """
    Pick the group a global transfer should be recorded in.

    Prefers the shared group where the debtor owes the creditor the most
    directly; otherwise the first shared group by ascending group ID.

    Raises:
        LedgerConsistencyError: if the two members share no group.
    """
    shared = sorted(
        group_id for group_id, member_ids in memberships.items()
        if transfer.from_id in member_ids and transfer.to_id in member_ids
    )
    if not shared:
        logger.error(
            "Global transfer %s -> %s has no shared group",
            transfer.from_id, transfer.to_id,
        )
        raise LedgerConsistencyError(
            f"{transfer.from_id} and {transfer.to_id} share no group"
        )

    best_group, best_amount = shared[0], 0
    for group_id in shared:
        direct = sum(
            edge.amount for edge in edges_by_group.get(group_id, ())
            if edge.from_id == transfer.from_id and edge.to_id == transfer.to_id
        )
        if direct > best_amount:
            best_group, best_amount = group_id, direct
    return best_group


def aggregate_global(
    group_balances: Mapping[Hashable, Mapping[Hashable, int]],
    member_id: Hashable,
    memberships: Optional[Mapping[Hashable, Sequence[Hashable]]] = None,
) -> GlobalView:
    """
    Build one member's view across several groups.

    Each group is simplified, the resulting debts between ``member_id``
    and each counterpart are netted across groups, and every netted pair
    becomes one transfer. Debts between two counterparts are left out:
    they are not the member's to settle and the two may share no group.

    Args:
        group_balances: ``{group_id: {member_id: balance}}``, each zero-sum.
        member_id: The member whose position is being viewed.
        memberships: ``{group_id: [member_id, ...]}`` for the same groups.
            Defaults to the members listed in ``group_balances``.

    Returns:
        GlobalView with the member's and counterparts' net positions, one
        transfer per counterpart (resolved to a shared group) and the
        netted pairwise debts.
    """
    if memberships is None:
        memberships = {group_id: list(balances) for group_id, balances in group_balances.items()}

    edges_by_group = group_pairwise_debts(group_balances)
    own_edges = {
        group_id: [edge for edge in edges if member_id in (edge.from_id, edge.to_id)]
        for group_id, edges in edges_by_group.items()
    }
    pairwise = net_pairwise(own_edges)

    balances: Dict[Hashable, int] = {member_id: 0}
    for counterpart_id, amount in balances_from_pairwise(pairwise).items():
        balances[counterpart_id] = balances.get(counterpart_id, 0) + amount
    assert_zero_sum(balances)

    # Largest debts first, ties by counterpart ID.
    ordered = sorted(
        pairwise.items(),
        key=lambda item: (-item[1], item[0][1] if item[0][0] == member_id else item[0][0]),
    )
    transfers = []
    for (debtor_id, creditor_id), amount in ordered:
        transfer = SuggestedTransfer(debtor_id, creditor_id, amount)
        transfers.append(ResolvedTransfer(
            from_id=debtor_id,
            to_id=creditor_id,
            amount=amount,
            group_id=resolve_transfer_group(transfer, edges_by_group, memberships),
        ))
    return GlobalView(balances=balances, transfers=transfers, pairwise=pairwise)
