"""
Tests for the administration endpoints and the health check.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from rest_framework import status


@pytest.mark.django_db
class TestDashboard:
    """Test suite for GET /api/admin/dashboard/."""

    def test_counts_marketplace_activity(self, auth_client, admin_user, buyer, product, make_order, make_seller):
        make_seller(verification_status='pending')
        paid = make_order(buyer, product, quantity=2)
        paid.payment_status = 'paid'
        paid.save(update_fields=['payment_status', 'updated_at'])
        make_order(buyer, product).transition_to('cancelled')

        response = auth_client(admin_user).get('/api/admin/dashboard/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['sellers']['total'] == 2
        assert response.data['sellers']['pending'] == 1
        assert response.data['sellers']['approved'] == 1
        assert response.data['products'] == {'total': 1, 'active': 1}
        assert response.data['orders']['total'] == 2
        assert response.data['orders']['by_status'] == {'pending': 1, 'cancelled': 1}
        assert Decimal(str(response.data['orders']['revenue'])) == Decimal('1800.00')

    def test_verifier_may_view(self, auth_client, verifier_user):
        response = auth_client(verifier_user).get('/api/admin/dashboard/')

        assert response.status_code == status.HTTP_200_OK

    def test_buyer_forbidden(self, auth_client, buyer):
        response = auth_client(buyer).get('/api/admin/dashboard/')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestUserAdministration:

    def test_list_filters_by_role_and_search(self, auth_client, admin_user, buyer, verifier_user):
        client = auth_client(admin_user)

        by_role = client.get('/api/admin/users/', {'role': 'verifier'})
        by_search = client.get('/api/admin/users/', {'search': 'buyer@'})

        assert [user['id'] for user in by_role.data['results']] == [verifier_user.id]
        assert [user['id'] for user in by_search.data['results']] == [buyer.id]

    def test_admin_changes_role(self, auth_client, admin_user, buyer):
        response = auth_client(admin_user).put(
            f'/api/admin/users/{buyer.id}/role/', {'role': 'verifier'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        buyer.refresh_from_db()
        assert buyer.role == 'verifier'

    def test_admin_cannot_change_own_role(self, auth_client, admin_user):
        response = auth_client(admin_user).put(
            f'/api/admin/users/{admin_user.id}/role/', {'role': 'buyer'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        admin_user.refresh_from_db()
        assert admin_user.role == 'admin'

    def test_verifier_cannot_change_roles(self, auth_client, verifier_user, buyer):
        response = auth_client(verifier_user).put(
            f'/api/admin/users/{buyer.id}/role/', {'role': 'admin'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_role_rejected(self, auth_client, admin_user, buyer):
        response = auth_client(admin_user).put(
            f'/api/admin/users/{buyer.id}/role/', {'role': 'overlord'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'role' in response.data


@pytest.mark.django_db
class TestHealth:

    def test_health_ok(self, api_client):
        response = api_client.get('/api/health/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'ok'
        assert response.data['database'] == 'ok'

    def test_health_ignores_bad_credentials(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer garbage')

        response = api_client.get('/api/health/')

        assert response.status_code == status.HTTP_200_OK

    def test_database_failure_is_503(self, api_client):
        with patch('store.views.connection') as mock_connection:
            mock_connection.cursor.side_effect = DatabaseError('gone')
            response = api_client.get('/api/health/')

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['database'] == 'unavailable'
