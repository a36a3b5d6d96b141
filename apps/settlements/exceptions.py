"""
Domain exceptions for settlements app.

This module defines the exception hierarchy for balance computation and
settlement lifecycle errors. Services raise these; views translate them
into HTTP responses (see ``views.service_error_response``).
"""


class SettlementsServiceError(Exception):
    """Base exception for settlement service errors."""
    status_code = 400
    default_code = 'settlement_error'


class LedgerConsistencyError(SettlementsServiceError):
    """
    Stored records contradict ledger invariants.

    Raised when split items don't add up to their expense, a record refers
    to someone outside the group, or computed balances don't sum to zero.
    Indicates upstream data corruption; balances are never reported for a
    ledger in this state.
    """
    status_code = 500
    default_code = 'ledger_inconsistent'


class InvalidAmountError(SettlementsServiceError):
    """Amount is not a positive exact number of minor units."""
    default_code = 'invalid_amount'


class SettlementNotFoundError(SettlementsServiceError):
    """Settlement record not found."""
    status_code = 404
    default_code = 'settlement_not_found'


class MemberNotFoundError(SettlementsServiceError):
    """Referenced user is not a member of the group."""
    status_code = 404
    default_code = 'member_not_found'


class SettlementConflictError(SettlementsServiceError):
    """An outstanding settlement already exists for this payer, payee and group."""
    status_code = 409
    default_code = 'settlement_in_progress'


class InvalidSettlementTransitionError(SettlementsServiceError):
    """Requested status change is not allowed from the current status."""
    status_code = 409
    default_code = 'invalid_transition'


class SettlementPermissionError(SettlementsServiceError):
    """User is not the party allowed to perform this transition."""
    status_code = 403
    default_code = 'insufficient_permissions'


class PayeeHandleMissingError(SettlementsServiceError):
    """Payee has no UPI ID, so no payment link can be generated."""
    default_code = 'no_upi_id'


class InvalidSettlementPartiesError(SettlementsServiceError):
    """Payer and payee of a settlement are the same member."""
    default_code = 'invalid_parties'
