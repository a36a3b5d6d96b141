import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def payer(db):
    """Create and return the member who pays."""
    return User.objects.create_user(
        email='payer@example.com',
        password='TestPass123!',
        display_name='Payer',
    )


@pytest.fixture
def member1(db):
    return User.objects.create_user(
        email='member1@example.com',
        password='TestPass123!',
        display_name='Member One',
    )


@pytest.fixture
def member2(db):
    return User.objects.create_user(
        email='member2@example.com',
        password='TestPass123!',
        display_name='Member Two',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        display_name='Outsider',
    )


@pytest.fixture
def expense_group(db, payer, member1, member2):
    """Group with payer, member1 and member2 (in that membership order)."""
    group = Group.objects.create(name='Trek', owner=payer)
    for user in (payer, member1, member2):
        GroupMembership.objects.create(user=user, group=group)
    return group


@pytest.fixture
def payer_client(api_client, payer):
    """Return API client authenticated as payer."""
    refresh = RefreshToken.for_user(payer)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def outsider_client(outsider):
    client = APIClient()
    refresh = RefreshToken.for_user(outsider)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client
