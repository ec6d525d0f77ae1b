"""
Tests for the permission audit trail.
"""

import pytest

from cadence.modules.audit.schemas import AuditLogCreate
from cadence.modules.audit.service import AuditService
from cadence.modules.permissions.service import PermissionsService


@pytest.mark.asyncio
async def test_record_audit_log_appends(store):
    service = AuditService(store)
    entry = await service.record_audit_log(
        AuditLogCreate(tag="rock", user_id="alice", actor_id="root", action="add", new_role="viewer")
    )

    assert entry.id
    assert entry.timestamp is not None
    assert len(await store.list_audit_logs()) == 1


@pytest.mark.asyncio
async def test_logs_newest_first_with_identities(store, root_actor):
    permissions = PermissionsService(store)
    await permissions.add_permission("rock", "alice", "viewer", root_actor)
    await permissions.update_permission("rock", "alice", "editor", root_actor)
    await permissions.add_permission("jazz", "bob", "viewer", root_actor)

    logs = await AuditService(store).get_audit_logs()
    assert [(e.tag, e.action) for e in logs] == [("jazz", "add"), ("rock", "update"), ("rock", "add")]
    assert logs[0].user.name == "Bob"
    assert logs[0].actor.name == "Root"


@pytest.mark.asyncio
async def test_filter_by_tag_and_limit(store, root_actor):
    permissions = PermissionsService(store)
    await permissions.add_permission("rock", "alice", "viewer", root_actor)
    await permissions.add_permission("rock", "bob", "viewer", root_actor)
    await permissions.add_permission("jazz", "bob", "viewer", root_actor)

    service = AuditService(store)
    assert {e.tag for e in await service.get_audit_logs(tag="rock")} == {"rock"}
    assert len(await service.get_audit_logs(limit=2)) == 2


@pytest.mark.asyncio
async def test_unknown_actor_falls_back_to_id(store):
    await AuditService(store).record_audit_log(
        AuditLogCreate(tag="rock", user_id="alice", actor_id="system", action="remove", old_role="viewer")
    )

    logs = await AuditService(store).get_audit_logs()
    assert logs[0].actor.id == "system"
    assert logs[0].actor.name is None


class TestAuditApi:
    def test_audit_listing(self, client, admin_headers):
        client.post("/tags/rock/permissions", json={"user_id": "alice", "role": "viewer"}, headers=admin_headers)
        client.post("/tags/jazz/permissions", json={"user_id": "bob", "role": "viewer"}, headers=admin_headers)

        everything = client.get("/tags/audit", headers=admin_headers).json()
        assert len(everything) == 2

        rock = client.get("/tags/audit", params={"tag": "rock"}, headers=admin_headers).json()
        assert len(rock) == 1
        assert rock[0]["user"]["name"] == "Alice"
        assert rock[0]["actor"]["id"] == "root"

    def test_invalid_limit(self, client, admin_headers):
        assert client.get("/tags/audit", params={"limit": 0}, headers=admin_headers).status_code == 422
