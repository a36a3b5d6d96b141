"""
Balance and settlement engine.

Pure functions over plain records: no ORM access, no caching. The
services package loads records from the database and calls in here.
"""

from .money import (
    MINOR_UNITS_PER_MAJOR,
    to_minor_units,
    to_major_units,
    format_major,
    split_evenly,
    split_by_weights,
)
from .ledger import (
    SettlementStatus,
    LedgerExpense,
    LedgerSplit,
    LedgerSettlement,
    Contribution,
    read_contributions,
)
from .balances import (
    MemberTotals,
    assert_zero_sum,
    calculate_balances,
    expense_totals,
    merge_balances,
)
from .simplifier import SuggestedTransfer, simplify_debts, apply_transfers
from .aggregator import (
    GlobalView,
    ResolvedTransfer,
    aggregate_global,
    net_pairwise,
    pairwise_debts,
    resolve_transfer_group,
)


__all__ = [
    'MINOR_UNITS_PER_MAJOR',
    'to_minor_units',
    'to_major_units',
    'format_major',
    'split_evenly',
    'split_by_weights',
    'SettlementStatus',
    'LedgerExpense',
    'LedgerSplit',
    'LedgerSettlement',
    'Contribution',
    'read_contributions',
    'assert_zero_sum',
    'calculate_balances',
    'merge_balances',
    'MemberTotals',
    'expense_totals',
    'SuggestedTransfer',
    'simplify_debts',
    'apply_transfers',
    'GlobalView',
    'ResolvedTransfer',
    'aggregate_global',
    'net_pairwise',
    'pairwise_debts',
    'resolve_transfer_group',
]
