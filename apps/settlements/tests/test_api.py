import pytest
from uuid import uuid4
from django.urls import reverse
from rest_framework import status
from apps.settlements.engine import SettlementStatus
from apps.settlements.models import SettlementRecord


# =============================================================================
# Balances
# =============================================================================

@pytest.mark.django_db
class TestGroupBalancesAPI:
    """Tests for GET /api/settlements/groups/{group_id}/balances/"""

    def test_group_balances(self, bob_client, dinner, trip, alice, bob):
        url = reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_settled'] is False
        assert response.data['currency'] == 'INR'
        balances = {entry['user']['id']: entry['amount'] for entry in response.data['balances']}
        assert balances[str(alice.id)] == 20000
        assert balances[str(bob.id)] == -10000
        assert len(response.data['transfers']) == 2
        for transfer in response.data['transfers']:
            assert transfer['to_user']['id'] == str(alice.id)
            assert transfer['amount'] == 10000
            assert transfer['amount_display'] == '100.00'
            assert transfer['group'] == str(trip.id)

    def test_group_totals(self, bob_client, dinner, trip, alice, bob):
        url = reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        response = bob_client.get(url)

        assert response.data['total_spent'] == 30000
        assert response.data['total_spent_display'] == '300.00'
        entries = {entry['user']['id']: entry for entry in response.data['balances']}
        assert (entries[str(alice.id)]['paid'], entries[str(alice.id)]['owed']) == (30000, 10000)
        assert (entries[str(bob.id)]['paid'], entries[str(bob.id)]['owed']) == (0, 10000)

    def test_empty_group_is_settled(self, alice_client, trip):
        url = reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_settled'] is True
        assert response.data['transfers'] == []

    def test_non_member_forbidden(self, outsider_client, trip):
        url = reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'not_group_member'

    def test_unknown_group(self, alice_client):
        url = reverse('settlements:group-balances', kwargs={'group_id': uuid4()})
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated(self, api_client, trip):
        url = reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestGlobalBalancesAPI:
    """Tests for GET /api/settlements/global/"""

    def test_global_balances(self, carol_client, dinner, trip, alice, carol):
        url = reverse('settlements:global-balances')
        response = carol_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['my_balance'] == -10000
        assert response.data['my_balance_display'] == '-100.00'
        assert response.data['groups'] == [str(trip.id)]
        # Bob's debt to alice is not carol's to settle
        transfers = response.data['transfers']
        assert len(transfers) == 1
        assert transfers[0]['from_user']['id'] == str(carol.id)
        assert transfers[0]['to_user']['id'] == str(alice.id)
        assert transfers[0]['group'] == str(trip.id)

    def test_no_groups(self, outsider_client):
        response = outsider_client.get(reverse('settlements:global-balances'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_settled'] is True
        assert response.data['my_balance'] == 0


# =============================================================================
# Settlement records
# =============================================================================

@pytest.mark.django_db
class TestSettlementCreateAPI:
    """Tests for POST /api/settlements/records/"""

    def test_create_settlement(self, bob_client, trip, alice, bob):
        url = reverse('settlements:settlement-list')
        response = bob_client.post(url, {
            'group': str(trip.id),
            'to_user': str(alice.id),
            'amount': 10000,
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == SettlementStatus.PENDING
        assert response.data['from_user']['id'] == str(bob.id)
        assert response.data['amount_display'] == '100.00'
        assert response.data['method'] == 'upi'

    def test_duplicate_open_settlement_conflicts(self, bob_client, pending_settlement, trip, alice):
        url = reverse('settlements:settlement-list')
        response = bob_client.post(url, {
            'group': str(trip.id),
            'to_user': str(alice.id),
            'amount': 500,
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'settlement_in_progress'

    def test_zero_amount_rejected(self, bob_client, trip, alice):
        url = reverse('settlements:settlement-list')
        response = bob_client.post(url, {
            'group': str(trip.id),
            'to_user': str(alice.id),
            'amount': 0,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_receiver_outside_group(self, bob_client, trip, outsider):
        url = reverse('settlements:settlement-list')
        response = bob_client.post(url, {
            'group': str(trip.id),
            'to_user': str(outsider.id),
            'amount': 100,
        }, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'member_not_found'

    def test_outsider_cannot_create(self, outsider_client, trip, alice):
        url = reverse('settlements:settlement-list')
        response = outsider_client.post(url, {
            'group': str(trip.id),
            'to_user': str(alice.id),
            'amount': 100,
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestSettlementListAPI:
    """Tests for GET /api/settlements/records/"""

    def test_list_visible_settlements(self, carol_client, pending_settlement, paid_settlement):
        response = carol_client.get(reverse('settlements:settlement-list'))

        assert response.status_code == status.HTTP_200_OK
        ids = {s['id'] for s in response.data['results']}
        assert ids == {str(pending_settlement.id), str(paid_settlement.id)}

    def test_list_filter_by_status(self, alice_client, pending_settlement, paid_settlement):
        response = alice_client.get(reverse('settlements:settlement-list'), {'status': 'paid_pending'})

        assert response.status_code == status.HTTP_200_OK
        assert [s['id'] for s in response.data['results']] == [str(paid_settlement.id)]

    def test_list_invalid_status(self, alice_client):
        response = alice_client.get(reverse('settlements:settlement-list'), {'status': 'refunded'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_outsider_sees_nothing(self, outsider_client, pending_settlement):
        response = outsider_client.get(reverse('settlements:settlement-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'] == []

    def test_retrieve_includes_events(self, bob_client, alice_client, pending_settlement):
        bob_client.post(
            reverse('settlements:settlement-mark-paid', kwargs={'pk': pending_settlement.id}),
            {'payment_reference': 'UTR42'},
            format='json',
        )

        url = reverse('settlements:settlement-detail', kwargs={'pk': pending_settlement.id})
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SettlementStatus.PAID_PENDING
        assert response.data['events'][0]['action'] == 'mark_paid'
        assert response.data['events'][0]['payment_reference'] == 'UTR42'

    def test_retrieve_outsider_not_found(self, outsider_client, pending_settlement):
        url = reverse('settlements:settlement-detail', kwargs={'pk': pending_settlement.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestSettlementTransitionsAPI:
    """Tests for mark_paid, confirm and cancel actions."""

    def test_full_lifecycle(self, bob_client, alice_client, trip, alice, bob, dinner):
        create = bob_client.post(reverse('settlements:settlement-list'), {
            'group': str(trip.id),
            'to_user': str(alice.id),
            'amount': 10000,
        }, format='json')
        settlement_id = create.data['id']

        paid = bob_client.post(
            reverse('settlements:settlement-mark-paid', kwargs={'pk': settlement_id}),
            {'payment_reference': 'UTR77'},
            format='json',
        )
        assert paid.status_code == status.HTTP_200_OK
        assert paid.data['status'] == SettlementStatus.PAID_PENDING

        confirmed = alice_client.post(
            reverse('settlements:settlement-confirm', kwargs={'pk': settlement_id})
        )
        assert confirmed.status_code == status.HTTP_200_OK
        assert confirmed.data['status'] == SettlementStatus.CONFIRMED

        balances = alice_client.get(
            reverse('settlements:group-balances', kwargs={'group_id': trip.id})
        )
        by_user = {entry['user']['id']: entry['amount'] for entry in balances.data['balances']}
        assert by_user[str(bob.id)] == 0
        assert by_user[str(alice.id)] == 10000

    def test_confirm_twice_is_ok(self, alice_client, paid_settlement):
        url = reverse('settlements:settlement-confirm', kwargs={'pk': paid_settlement.id})

        assert alice_client.post(url).status_code == status.HTTP_200_OK
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SettlementStatus.CONFIRMED

    def test_payer_cannot_confirm(self, carol_client, paid_settlement):
        url = reverse('settlements:settlement-confirm', kwargs={'pk': paid_settlement.id})
        response = carol_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'insufficient_permissions'

    def test_confirm_pending_is_invalid(self, alice_client, pending_settlement):
        url = reverse('settlements:settlement-confirm', kwargs={'pk': pending_settlement.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'invalid_transition'

    def test_receiver_cannot_mark_paid(self, alice_client, pending_settlement):
        url = reverse('settlements:settlement-mark-paid', kwargs={'pk': pending_settlement.id})
        response = alice_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cancel(self, alice_client, pending_settlement, alice):
        url = reverse('settlements:settlement-cancel', kwargs={'pk': pending_settlement.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == SettlementStatus.CANCELLED
        assert response.data['cancelled_by']['id'] == str(alice.id)

    def test_cancel_confirmed_is_invalid(self, alice_client, paid_settlement):
        SettlementRecord.objects.filter(id=paid_settlement.id).update(status=SettlementStatus.CONFIRMED)

        url = reverse('settlements:settlement-cancel', kwargs={'pk': paid_settlement.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_unknown_settlement(self, alice_client):
        url = reverse('settlements:settlement-confirm', kwargs={'pk': uuid4()})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'settlement_not_found'


@pytest.mark.django_db
class TestPaymentHandoffAPI:
    """Tests for payment_link and qr_code actions."""

    def test_payment_link(self, bob_client, pending_settlement):
        url = reverse('settlements:settlement-payment-link', kwargs={'pk': pending_settlement.id})
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['upi_link'].startswith('upi://pay?pa=alice%40okaxis')
        assert response.data['amount'] == 10000
        assert set(response.data['app_links']) == {'generic', 'gpay', 'phonepe', 'paytm'}

    def test_payment_link_without_upi_id(self, alice_client, trip, alice, bob):
        settlement = SettlementRecord.objects.create(
            group=trip, from_user=alice, to_user=bob, amount=500,
        )
        url = reverse('settlements:settlement-payment-link', kwargs={'pk': settlement.id})
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'no_upi_id'

    def test_qr_code_png(self, bob_client, pending_settlement):
        url = reverse('settlements:settlement-qr-code', kwargs={'pk': pending_settlement.id})
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'image/png'
        assert response.content.startswith(b'\x89PNG')


@pytest.mark.django_db
class TestHealthCheck:

    def test_health_check_reports_database(self, api_client):
        response = api_client.get(reverse('health-check'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'healthy', 'database': 'ok'}
