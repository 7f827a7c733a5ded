import pytest
from decimal import Decimal
from uuid import uuid4
from django.urls import reverse
from rest_framework import status

from apps.ledger.models import SplitEvent, SplitStatus
from apps.ledger.services import deposit, pay_share
from .conftest import make_client


@pytest.mark.django_db
class TestSplitCreateApi:
    """Tests for POST /api/splits/"""

    def test_create_equal_split(self, creator_client, alice, bob):
        url = reverse('ledger:split-list')
        response = creator_client.post(url, {
            'name': 'Dinner',
            'total_amount': '90.00',
            'split_type': 'equal',
            'participant_ids': [str(alice.id), str(bob.id)],
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == SplitStatus.IN_PROGRESS
        assert len(response.data['participants']) == 3
        assert {p['amount'] for p in response.data['participants']} == {'30.00'}

    def test_specified_split_without_receipt(self, creator_client, alice):
        url = reverse('ledger:split-list')
        response = creator_client.post(url, {
            'name': 'Concert',
            'total_amount': '100.00',
            'split_type': 'specified',
            'participant_ids': [str(alice.id)],
            'creator_share': '40.00',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'missing_receipt'

    def test_negative_total(self, creator_client, alice):
        url = reverse('ledger:split-list')
        response = creator_client.post(url, {
            'name': 'Refund?',
            'total_amount': '-10.00',
            'split_type': 'equal',
            'participant_ids': [str(alice.id)],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_amount'

    def test_missing_fields(self, creator_client):
        url = reverse('ledger:split-list')
        response = creator_client.post(url, {'name': 'Dinner'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unauthenticated(self, api_client):
        url = reverse('ledger:split-list')
        response = api_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestSplitReadApi:
    """Tests for list / detail / summary endpoints."""

    def test_list_shows_my_share(self, dinner, alice_client):
        url = reverse('ledger:split-list')
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        result = response.data['results'][0]
        assert result['name'] == 'Dinner'
        assert result['my_share'] == {'amount': '30.00', 'status': 'pending', 'is_creator': False}

    def test_list_filter_by_status(self, dinner, alice_client):
        url = reverse('ledger:split-list')
        response = alice_client.get(url, {'status': 'completed'})

        assert response.data['count'] == 0

    def test_outsider_cannot_see_split(self, dinner, outsider_client):
        url = reverse('ledger:split-detail', kwargs={'pk': dinner.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'split_not_found'

    def test_detail(self, dinner, alice_client):
        url = reverse('ledger:split-detail', kwargs={'pk': dinner.id})
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['creator']['display_name'] == 'Carol Creator'

    def test_summary(self, dinner, funded, creator_client):
        alice, _ = funded
        pay_share(split_event_id=dinner.id, user=alice)

        url = reverse('ledger:split-summary', kwargs={'pk': dinner.id})
        response = creator_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['collected_amount'] == '60.00'
        assert response.data['outstanding_amount'] == '30.00'
        assert response.data['outstanding_count'] == 1

    def test_my_outstanding(self, dinner, alice_client):
        url = reverse('ledger:my-outstanding')
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_outstanding'] == '30.00'
        assert response.data['count'] == 1


@pytest.mark.django_db
class TestPaymentApi:
    """Tests for POST /api/splits/{id}/pay/"""

    def test_pay(self, dinner, funded, alice_client):
        url = reverse('ledger:split-pay', kwargs={'pk': dinner.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'paid'

    def test_pay_twice_conflict(self, dinner, funded, alice_client):
        url = reverse('ledger:split-pay', kwargs={'pk': dinner.id})
        alice_client.post(url)
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'already_settled'

    def test_pay_without_funds(self, dinner, alice_client):
        url = reverse('ledger:split-pay', kwargs={'pk': dinner.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
        assert response.data['code'] == 'insufficient_funds'

    def test_pay_unknown_split(self, alice_client):
        url = reverse('ledger:split-pay', kwargs={'pk': uuid4()})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_last_payment_completes(self, dinner, funded):
        alice, bob = funded
        make_client(alice).post(reverse('ledger:split-pay', kwargs={'pk': dinner.id}))
        make_client(bob).post(reverse('ledger:split-pay', kwargs={'pk': dinner.id}))

        dinner.refresh_from_db()
        assert dinner.status == SplitStatus.COMPLETED


@pytest.mark.django_db
class TestResponseApi:
    """Tests for respond / decline actions."""

    def test_accept(self, dinner, alice_client):
        url = reverse('ledger:split-respond', kwargs={'pk': dinner.id})
        response = alice_client.post(url, {'accept': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'accepted'

    def test_decline(self, dinner, alice_client):
        url = reverse('ledger:split-decline', kwargs={'pk': dinner.id})
        response = alice_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert SplitEvent.objects.get(id=dinner.id).status == SplitStatus.BLOCKED_ON_DECLINE

    def test_creator_cannot_decline(self, dinner, creator_client):
        url = reverse('ledger:split-decline', kwargs={'pk': dinner.id})
        response = creator_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'creator_cannot_respond'


@pytest.mark.django_db
class TestWalletApi:
    """Tests for /api/wallet/ endpoints."""

    def test_wallet_created_on_first_read(self, alice_client):
        response = alice_client.get(reverse('wallet:wallet'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['balance'] == '0.00'

    def test_deposit(self, alice_client):
        response = alice_client.post(reverse('wallet:wallet-deposit'), {'amount': '12.50'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['type'] == 'deposit'
        assert response.data['balance_after'] == '12.50'

    def test_withdraw_too_much(self, alice, alice_client):
        deposit(user=alice, amount=Decimal('5.00'))
        response = alice_client.post(reverse('wallet:wallet-withdraw'), {'amount': '6.00'}, format='json')

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED

    def test_transactions(self, alice, alice_client):
        deposit(user=alice, amount=Decimal('5.00'))
        deposit(user=alice, amount=Decimal('7.00'))

        response = alice_client.get(reverse('wallet:wallet-transactions'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
