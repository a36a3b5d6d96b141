"""
Membership lookup service.

Read-only queries over groups and memberships. Group and membership
CRUD lives outside this project; balance and settlement code only
needs to know who belongs where.
"""

from typing import Dict, List
from uuid import UUID

from django.db.models import QuerySet

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership

from .exceptions import GroupNotFoundError, NotMemberError


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return Group.objects.select_related('owner').get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def get_group_members(*, group_id: UUID) -> QuerySet[GroupMembership]:
    """
    Get all members of a group in membership order.

    Membership order (joined_at, then id) is the iteration order used for
    split remainders, so it must stay stable.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMembership.objects
        .filter(group_id=group_id)
        .select_related('user')
        .order_by('joined_at', 'id')
    )


def get_member_ids(*, group_id: UUID) -> List[UUID]:
    """Return member user IDs of a group in membership order."""
    return [m.user_id for m in get_group_members(group_id=group_id)]


def require_membership(*, group: Group, user: User) -> None:
    """
    Raises:
        NotMemberError: If user is not a member of group
    """
    if not group.has_member(user):
        raise NotMemberError(f"User is not a member of {group.name}")


def get_user_groups(*, user: User) -> QuerySet[Group]:
    """Groups the user belongs to, oldest first."""
    return (
        Group.objects
        .filter(memberships__user=user)
        .order_by('created_at', 'id')
        .distinct()
    )


def get_memberships_by_group(*, group_ids: List[UUID]) -> Dict[UUID, List[UUID]]:
    """
    Map each group ID to its member user IDs (membership order).

    Used by the global view to resolve which groups two members share.
    """
    members: Dict[UUID, List[UUID]] = {group_id: [] for group_id in group_ids}
    memberships = (
        GroupMembership.objects
        .filter(group_id__in=group_ids)
        .order_by('joined_at', 'id')
        .values_list('group_id', 'user_id')
    )
    for group_id, user_id in memberships:
        members[group_id].append(user_id)
    return members
