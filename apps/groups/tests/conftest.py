import pytest
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership


@pytest.fixture
def group_owner(db):
    """Create and return a test user (group owner)."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Group Owner',
    )


@pytest.fixture
def member_user(db):
    """Create and return a regular member."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Group Member',
    )


@pytest.fixture
def outsider_user(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        display_name='Outsider',
    )


@pytest.fixture
def group(db, group_owner, member_user):
    """Create a group with owner and one member."""
    group = Group.objects.create(name='Goa Trip', owner=group_owner)
    GroupMembership.objects.create(user=group_owner, group=group)
    GroupMembership.objects.create(user=member_user, group=group)
    return group


@pytest.fixture
def second_group(db, group_owner):
    """Create another group containing only the owner."""
    group = Group.objects.create(name='Flatmates', owner=group_owner)
    GroupMembership.objects.create(user=group_owner, group=group)
    return group
