"""
Pytest configuration and fixtures for box inventory tests.
"""
import pytest
from django.contrib.auth import get_user_model

from inventory.models import Membership, Role
from inventory.services import InventoryService

User = get_user_model()


@pytest.fixture
def service(db):
    """Inventory service on the default database."""
    return InventoryService()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        email='test@example.com',
        password='testpass123'
    )


@pytest.fixture
def other_user(db):
    """Create another test user for permission tests."""
    return User.objects.create_user(
        username='otheruser',
        email='other@example.com',
        password='otherpass123'
    )


@pytest.fixture
def make_user(db):
    """Factory for extra users: make_user('carol') -> carol@example.com."""
    def _make(username):
        return User.objects.create_user(
            username=username,
            email=f'{username}@example.com',
            password='pass12345'
        )
    return _make


@pytest.fixture
def workspace(service, user):
    """A workspace owned by ``user``."""
    return service.create_workspace(user, 'Home')


@pytest.fixture
def add_member(workspace):
    """Attach a user to ``workspace`` with the given role, bypassing the services."""
    def _add(member, role=Role.MEMBER, target=None):
        return Membership.objects.create(workspace=target or workspace, user=member, role=role)
    return _add


@pytest.fixture
def authenticated_client(client, user):
    """Return a Django test client with authenticated user."""
    client.force_login(user)
    return client


@pytest.fixture
def other_client(client, other_user):
    """Return a Django test client authenticated as ``other_user``."""
    client.force_login(other_user)
    return client
