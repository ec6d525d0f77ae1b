"""Shared fixtures: an isolated in-memory store and signed tokens."""

import pytest
from fastapi.testclient import TestClient

from cadence.auth import create_access_token
from cadence.auth.schemas import Actor
from cadence.config import get_settings
from cadence.core import InMemoryStore
from cadence.main import app
from cadence.modules.audit.router import get_service as get_audit_service
from cadence.modules.audit.service import AuditService
from cadence.modules.hierarchy.router import get_service as get_hierarchy_service
from cadence.modules.hierarchy.service import HierarchyService
from cadence.modules.notifications.router import get_service as get_notification_service
from cadence.modules.notifications.service import NotificationService
from cadence.modules.permissions.router import get_service as get_permissions_service
from cadence.modules.permissions.service import PermissionsService
from cadence.modules.templates.router import get_service as get_templates_service
from cadence.modules.templates.service import TemplatesService
from cadence.modules.versions.router import get_permissions as get_version_permissions
from cadence.modules.versions.router import get_service as get_version_service
from cadence.modules.versions.service import VersionService

USERS = [
    {"id": "root", "name": "Root", "email": "root@cadence.local"},
    {"id": "alice", "name": "Alice", "email": "alice@cadence.local"},
    {"id": "bob", "name": "Bob", "email": "bob@cadence.local"},
    {"id": "carol", "name": "Carol", "email": None},
]


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch):
    # Keep tests deterministic even if a local .env enables the bypass.
    monkeypatch.setenv("AUTH_INSECURE_DEV_BYPASS", "false")
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("GOVERNANCE_STORAGE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    """Fresh store with the seeded users."""
    s = InMemoryStore()
    for user in USERS:
        s._users[user["id"]] = dict(user)
    return s


@pytest.fixture
def root_actor():
    return Actor(id="root", name="Root", roles=["admin"])


@pytest.fixture
def alice_actor():
    return Actor(id="alice", name="Alice", roles=["user"])


@pytest.fixture
def client(store):
    """Test client whose services all share the fixture store."""
    overrides = {
        get_hierarchy_service: lambda: HierarchyService(store),
        get_permissions_service: lambda: PermissionsService(store),
        get_templates_service: lambda: TemplatesService(store),
        get_audit_service: lambda: AuditService(store),
        get_version_service: lambda: VersionService(store),
        get_version_permissions: lambda: PermissionsService(store),
        get_notification_service: lambda: NotificationService(store),
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)


def auth_headers(user_id: str, roles: list[str] | None = None, name: str | None = None) -> dict[str, str]:
    token, _ = create_access_token(settings=get_settings(), user_id=user_id, name=name, roles=roles)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers("root", roles=["admin"], name="Root")


@pytest.fixture
def alice_headers():
    return auth_headers("alice", name="Alice")


@pytest.fixture
def bob_headers():
    return auth_headers("bob", name="Bob")


@pytest.fixture
def make_headers():
    return auth_headers
