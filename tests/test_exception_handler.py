"""
Tests for the API exception handler.
"""

import importlib

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.test import APIRequestFactory
from rest_framework.views import APIView

from store.exceptions import Conflict, DuplicateBargain, InsufficientStock, api_exception_handler


def handle(exc):
    request = APIRequestFactory().get('/')
    return api_exception_handler(exc, {'view': APIView(), 'request': request})


class TestApiExceptionHandler:

    def test_conflict_carries_code(self):
        response = handle(Conflict('Nope.'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {'detail': 'Nope.', 'code': 'conflict'}

    def test_subclass_codes(self):
        assert handle(InsufficientStock()).data['code'] == 'insufficient_stock'
        assert handle(DuplicateBargain()).data['code'] == 'duplicate_bargain'

    def test_not_found_code(self):
        response = handle(NotFound('Product not found.'))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'not_found'

    def test_model_validation_error_becomes_400(self):
        response = handle(DjangoValidationError({'status': ['Cannot modify a delivered order.']}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {'status': ['Cannot modify a delivered order.']}

    def test_plain_model_validation_error(self):
        response = handle(DjangoValidationError('Status history entries are append-only.'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == ['Status history entries are append-only.']

    def test_unexpected_error_is_redacted(self, settings):
        settings.DEBUG = False

        response = handle(RuntimeError('database password is hunter2'))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['code'] == 'server_error'
        assert 'error' not in response.data
        assert 'hunter2' not in str(response.data)

    def test_unexpected_error_exposed_in_debug(self, settings):
        settings.DEBUG = True

        response = handle(RuntimeError('boom'))

        assert response.data['error'] == 'boom'

    def test_unexpected_error_is_logged(self, caplog):
        with caplog.at_level('ERROR', logger='store'):
            handle(RuntimeError('kaboom'))

        assert any('kaboom' in record.getMessage() for record in caplog.records)


@pytest.mark.django_db
def test_validation_errors_keep_field_layout(api_client):
    response = api_client.post('/api/auth/register/', {}, format='json')

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert 'email' in response.data
    assert 'code' not in response.data


def test_debug_is_off_unless_enabled(monkeypatch):
    import bargain_bazaar.settings as project_settings

    monkeypatch.delenv('DJANGO_DEBUG', raising=False)
    try:
        importlib.reload(project_settings)
        assert project_settings.DEBUG is False
    finally:
        monkeypatch.undo()
        importlib.reload(project_settings)
