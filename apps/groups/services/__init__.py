"""
Groups app services layer.

Only membership lookups live here; balance and settlement code
depends on them to decide who belongs to which scope.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    NotMemberError,
)

from .membership_management import (
    get_group_by_id,
    get_group_members,
    get_member_ids,
    require_membership,
    get_user_groups,
    get_memberships_by_group,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'NotMemberError',

    # Membership lookups
    'get_group_by_id',
    'get_group_members',
    'get_member_ids',
    'require_membership',
    'get_user_groups',
    'get_memberships_by_group',
]
