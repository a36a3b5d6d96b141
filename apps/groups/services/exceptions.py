"""
Exceptions raised by group membership lookups.

Balance and settlement views map these to 404 and 403 responses.
"""


class GroupsServiceError(Exception):
    """Base class for group lookup failures."""


class GroupNotFoundError(GroupsServiceError):
    """No group with the given ID."""


class NotMemberError(GroupsServiceError):
    """The user is not in the group whose ledger they asked for."""
