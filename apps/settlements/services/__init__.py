"""
Settlements app services layer.

Database-backed entry points: balance computation over stored records,
the settlement lifecycle, and UPI payment handoff.
"""

from .balance_computation import (
    GroupLedger,
    GroupBalances,
    GlobalBalances,
    load_group_ledger,
    compute_group_balances,
    compute_global_balances,
)

from .settlement_lifecycle import (
    get_settlement,
    list_settlements,
    create_settlement,
    mark_settlement_paid,
    confirm_settlement,
    cancel_settlement,
)

from .upi_payment import UPIPaymentGenerator


__all__ = [
    # Balances
    'GroupLedger',
    'GroupBalances',
    'GlobalBalances',
    'load_group_ledger',
    'compute_group_balances',
    'compute_global_balances',

    # Lifecycle
    'get_settlement',
    'list_settlements',
    'create_settlement',
    'mark_settlement_paid',
    'confirm_settlement',
    'cancel_settlement',

    # Payment handoff
    'UPIPaymentGenerator',
]
