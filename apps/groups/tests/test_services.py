"""
Service layer unit tests for groups app.

Tests cover:
- Group lookup
- Membership ordering
- Membership checks
"""

import pytest
from uuid import uuid4

from apps.groups.services import (
    get_group_by_id,
    get_group_members,
    get_member_ids,
    require_membership,
    get_user_groups,
    get_memberships_by_group,
)
from apps.groups.services.exceptions import GroupNotFoundError, NotMemberError


@pytest.mark.django_db
class TestGroupLookup:
    """Tests for group lookup functions."""

    def test_get_group_by_id_success(self, group):
        """Can retrieve group by ID."""
        retrieved = get_group_by_id(group_id=group.id)

        assert retrieved.id == group.id
        assert retrieved.name == group.name

    def test_get_group_by_id_not_found(self):
        """Raises GroupNotFoundError if group doesn't exist."""
        with pytest.raises(GroupNotFoundError):
            get_group_by_id(group_id=uuid4())

    def test_get_user_groups(self, group, second_group, group_owner, member_user):
        """Returns only groups the user belongs to."""
        owner_groups = list(get_user_groups(user=group_owner))
        member_groups = list(get_user_groups(user=member_user))

        assert {g.id for g in owner_groups} == {group.id, second_group.id}
        assert [g.id for g in member_groups] == [group.id]


@pytest.mark.django_db
class TestMembershipLookup:
    """Tests for membership queries."""

    def test_get_group_members_in_join_order(self, group, group_owner, member_user):
        """Members come back in the order they joined."""
        members = list(get_group_members(group_id=group.id))

        assert [m.user for m in members] == [group_owner, member_user]

    def test_get_group_members_unknown_group(self):
        """Unknown group raises GroupNotFoundError."""
        with pytest.raises(GroupNotFoundError):
            get_group_members(group_id=uuid4())

    def test_get_member_ids(self, group, group_owner, member_user):
        assert get_member_ids(group_id=group.id) == [group_owner.id, member_user.id]

    def test_require_membership_passes_for_member(self, group, member_user):
        require_membership(group=group, user=member_user)

    def test_require_membership_rejects_outsider(self, group, outsider_user):
        with pytest.raises(NotMemberError):
            require_membership(group=group, user=outsider_user)

    def test_get_memberships_by_group(self, group, second_group, group_owner, member_user):
        """Maps every requested group to its member IDs."""
        mapping = get_memberships_by_group(group_ids=[group.id, second_group.id])

        assert mapping[group.id] == [group_owner.id, member_user.id]
        assert mapping[second_group.id] == [group_owner.id]
