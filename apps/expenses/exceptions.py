"""
Domain exceptions for expenses app.

This module defines the exception hierarchy for expense-entry errors.
Views translate them to HTTP 400/403/404 responses.
"""


class ExpenseServiceError(Exception):
    """Base exception for expense service errors."""
    pass


class NoParticipantsError(ExpenseServiceError):
    """Raised when no participants found for an expense split."""
    pass


class InvalidSplitError(ExpenseServiceError):
    """Raised when requested shares cannot add up to the expense total."""
    pass


class InvalidExpenseAmountError(ExpenseServiceError):
    """Raised when the expense amount is not a positive number of minor units."""
    pass


class ExpenseNotFoundError(ExpenseServiceError):
    """Expense record not found or not visible to the user."""
    pass


class UnknownParticipantError(ExpenseServiceError):
    """Raised when split members or shares name users outside the group."""
    pass
