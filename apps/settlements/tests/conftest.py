import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.expenses.services import ExpenseSplitService
from apps.groups.models import Group, GroupMembership
from apps.settlements.models import SettlementRecord
from apps.settlements.engine import SettlementStatus


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    """Member who usually pays; has a UPI ID."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        display_name='Alice',
        upi_id='alice@okaxis',
    )


@pytest.fixture
def bob(db):
    """Member without a UPI ID."""
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        display_name='Bob',
    )


@pytest.fixture
def carol(db):
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
        display_name='Carol',
        upi_id='carol@ybl',
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
def trip(db, alice, bob, carol):
    """Group of alice, bob and carol (in that membership order)."""
    group = Group.objects.create(name='Goa Trip', owner=alice)
    for user in (alice, bob, carol):
        GroupMembership.objects.create(user=user, group=group)
    return group


@pytest.fixture
def flat(db, alice, bob):
    """Second group shared by alice and bob only."""
    group = Group.objects.create(name='Flatmates', owner=bob)
    for user in (alice, bob):
        GroupMembership.objects.create(user=user, group=group)
    return group


@pytest.fixture
def dinner(trip, alice):
    """Alice paid 300.00 for everyone in the trip."""
    expense, _ = ExpenseSplitService.create_group_expense(
        group_id=trip.id,
        paid_by_user=alice,
        amount=30000,
        description='Dinner',
    )
    return expense


@pytest.fixture
def pending_settlement(trip, bob, alice):
    """Bob owes alice 100.00 and has started settling."""
    return SettlementRecord.objects.create(
        group=trip,
        from_user=bob,
        to_user=alice,
        amount=10000,
    )


@pytest.fixture
def paid_settlement(trip, carol, alice):
    """Carol reports having paid alice 100.00."""
    return SettlementRecord.objects.create(
        group=trip,
        from_user=carol,
        to_user=alice,
        amount=10000,
        status=SettlementStatus.PAID_PENDING,
        payment_reference='UTR123',
    )


@pytest.fixture
def alice_client(alice):
    """Return API client authenticated as alice."""
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def carol_client(carol):
    return _client_for(carol)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)
