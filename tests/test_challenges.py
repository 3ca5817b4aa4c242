"""
Tests for price challenges.

Tests cover:
- The 90% ceiling on the challenge price
- Seller responses and their restrictions
- Accepting a response
- Public listing and lazy expiry
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework import status

from store.models import Challenge, ChallengeResponse, Order


@pytest.fixture
def challenge(buyer):
    return Challenge.objects.create(
        user=buyer,
        product_name='Noise cancelling headphones',
        product_url='https://www.amazon.in/dp/B0TEST',
        platform='amazon',
        current_price=Decimal('1000.00'),
        challenge_price=Decimal('890.00'),
        delivery_time='2 days',
        city='Mumbai',
    )


def challenge_payload(**overrides):
    data = {
        'product_name': 'Noise cancelling headphones',
        'product_url': 'https://www.flipkart.com/p/itm123',
        'platform': 'flipkart',
        'current_price': '1000.00',
        'challenge_price': '890.00',
        'delivery_time': '2 days',
        'city': 'Mumbai',
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestPostChallenge:
    """Test suite for POST /api/challenges/."""

    url = '/api/challenges/'

    def test_price_above_ninety_percent_rejected(self, auth_client, buyer):
        response = auth_client(buyer).post(self.url, challenge_payload(challenge_price='920.00'), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'conflict'
        assert Challenge.objects.count() == 0

    def test_price_at_ninety_percent_accepted(self, auth_client, buyer):
        response = auth_client(buyer).post(self.url, challenge_payload(challenge_price='900.00'), format='json')

        assert response.status_code == status.HTTP_201_CREATED

    def test_valid_challenge_is_active(self, auth_client, buyer):
        response = auth_client(buyer).post(self.url, challenge_payload(), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'active'
        assert response.data['user']['id'] == buyer.id
        assert response.data['responses'] == []

        created = Challenge.objects.get(pk=response.data['id'])
        assert created.expires_at > timezone.now() + timedelta(days=6)

    def test_requires_authentication(self, api_client, db):
        response = api_client.post(self.url, challenge_payload(), format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_platform_rejected(self, auth_client, buyer):
        response = auth_client(buyer).post(self.url, challenge_payload(platform='ebay'), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'platform' in response.data


@pytest.mark.django_db
class TestBrowseChallenges:

    def test_public_list_shows_active_only(self, api_client, challenge, buyer):
        Challenge.objects.create(
            user=buyer, product_name='Old', product_url='https://example.com/old', platform='other',
            current_price=Decimal('100'), challenge_price=Decimal('80'), delivery_time='1 day',
            status='accepted',
        )

        response = api_client.get('/api/challenges/')

        assert response.status_code == status.HTTP_200_OK
        assert [item['id'] for item in response.data['results']] == [challenge.id]

    def test_overdue_challenges_expire_on_listing(self, api_client, challenge):
        Challenge.objects.filter(pk=challenge.pk).update(expires_at=timezone.now() - timedelta(seconds=1))

        response = api_client.get('/api/challenges/')

        assert response.data['count'] == 0
        challenge.refresh_from_db()
        assert challenge.status == 'expired'

    def test_detail_is_public(self, api_client, challenge):
        response = api_client.get(f'/api/challenges/{challenge.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['product_name'] == challenge.product_name


@pytest.mark.django_db
class TestRespondToChallenge:
    """Test suite for POST /api/challenges/<id>/respond/."""

    def url(self, challenge):
        return f'/api/challenges/{challenge.id}/respond/'

    def test_approved_seller_responds(self, auth_client, seller, challenge):
        response = auth_client(seller.user).post(
            self.url(challenge),
            {'offered_price': '880.00', 'delivery_time': '1 day', 'message': 'In stock'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['responses']) == 1
        assert response.data['responses'][0]['seller']['id'] == seller.id
        assert response.data['responses'][0]['status'] == 'pending'

    def test_one_response_per_seller(self, auth_client, seller, challenge):
        client = auth_client(seller.user)
        client.post(self.url(challenge), {'offered_price': '880.00', 'delivery_time': '1 day'}, format='json')

        response = client.post(self.url(challenge), {'offered_price': '850.00', 'delivery_time': '1 day'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert challenge.responses.count() == 1

    def test_pending_seller_cannot_respond(self, auth_client, make_seller, challenge):
        pending = make_seller(verification_status='pending')

        response = auth_client(pending.user).post(
            self.url(challenge), {'offered_price': '880.00', 'delivery_time': '1 day'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_seller_cannot_answer_own_challenge(self, auth_client, make_seller, challenge, buyer):
        make_seller(user=buyer)

        response = auth_client(buyer).post(
            self.url(challenge), {'offered_price': '880.00', 'delivery_time': '1 day'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_expired_challenge_rejects_responses(self, auth_client, seller, challenge):
        Challenge.objects.filter(pk=challenge.pk).update(expires_at=timezone.now() - timedelta(seconds=1))

        response = auth_client(seller.user).post(
            self.url(challenge), {'offered_price': '880.00', 'delivery_time': '1 day'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        challenge.refresh_from_db()
        assert challenge.status == 'expired'
        assert challenge.responses.count() == 0


@pytest.mark.django_db
class TestAcceptChallengeResponse:
    """Test suite for POST /api/challenges/<id>/accept/<response_id>/."""

    @pytest.fixture
    def responses(self, challenge, seller, make_seller):
        first = ChallengeResponse.objects.create(
            challenge=challenge, seller=seller, offered_price=Decimal('880'), delivery_time='1 day'
        )
        second = ChallengeResponse.objects.create(
            challenge=challenge, seller=make_seller(), offered_price=Decimal('870'), delivery_time='3 days'
        )
        return first, second

    def test_accepting_rejects_the_rest(self, auth_client, buyer, challenge, responses, seller):
        first, second = responses

        response = auth_client(buyer).post(f'/api/challenges/{challenge.id}/accept/{first.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'accepted'
        assert response.data['accepted_seller']['id'] == seller.id

        first.refresh_from_db()
        second.refresh_from_db()
        assert first.status == 'accepted'
        assert second.status == 'rejected'
        assert Order.objects.count() == 0

    def test_only_creator_can_accept(self, auth_client, other_buyer, challenge, responses):
        first, _ = responses

        response = auth_client(other_buyer).post(f'/api/challenges/{challenge.id}/accept/{first.id}/')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        challenge.refresh_from_db()
        assert challenge.status == 'active'

    def test_response_of_another_challenge_not_found(self, auth_client, buyer, challenge, responses):
        response = auth_client(buyer).post(f'/api/challenges/{challenge.id}/accept/99999/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_cannot_accept_twice(self, auth_client, buyer, challenge, responses):
        first, second = responses
        client = auth_client(buyer)
        client.post(f'/api/challenges/{challenge.id}/accept/{first.id}/')

        response = client.post(f'/api/challenges/{challenge.id}/accept/{second.id}/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
