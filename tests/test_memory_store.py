"""
Tests for the in-memory store: snapshot persistence and atomic writes.
"""

import asyncio

import pytest

from cadence.core import InMemoryStore
from cadence.exceptions import DuplicateAssignmentException


@pytest.mark.asyncio
async def test_snapshot_round_trip(tmp_path):
    path = tmp_path / "governance.json"
    store = InMemoryStore(snapshot_path=path)
    await store.upsert_user({"id": "alice", "name": "Alice"})
    await store.insert_edge("music", "rock")
    await store.apply_permission_change(tag="rock", user_id="alice", mode="add", role="editor", actor_id="root")

    reloaded = InMemoryStore(snapshot_path=path)
    assert await reloaded.get_role("rock", "alice") == "editor"
    assert await reloaded.list_edges() == await store.list_edges()
    assert len(await reloaded.list_audit_logs()) == 1


@pytest.mark.asyncio
async def test_concurrent_adds_only_one_wins(store):
    async def add(role):
        try:
            return await store.apply_permission_change(
                tag="rock", user_id="alice", mode="add", role=role, actor_id="root"
            )
        except DuplicateAssignmentException:
            return None

    results = await asyncio.gather(*(add(r) for r in ("viewer", "editor", "admin")))

    assert sum(r is not None for r in results) == 1
    assert len(await store.list_audit_logs()) == 1


@pytest.mark.asyncio
async def test_remove_drops_empty_tag(store):
    await store.apply_permission_change(tag="rock", user_id="alice", mode="add", role="viewer", actor_id="root")
    await store.apply_permission_change(tag="rock", user_id="alice", mode="remove", role=None, actor_id="root")

    assert await store.list_permissions() == []


@pytest.mark.asyncio
async def test_returned_records_are_copies(store):
    await store.insert_template({"id": "t1", "name": "Crew", "roles": [], "updated_at": "2024-01-01T00:00:00+00:00"})

    template = await store.get_template("t1")
    template["roles"].append({"user_id": "alice", "role": "admin"})

    assert (await store.get_template("t1"))["roles"] == []


@pytest.mark.asyncio
async def test_delete_version_persists(tmp_path):
    path = tmp_path / "governance.json"
    store = InMemoryStore(snapshot_path=path)
    for number in (1, 2):
        await store.insert_version(
            {"id": f"v{number}", "tag": "rock", "version": number, "changes": [], "timestamp": "2024-01-01T00:00:00+00:00"}
        )

    assert await store.delete_version("jazz", "v1") is False
    assert await store.delete_version("rock", "v1") is True

    reloaded = InMemoryStore(snapshot_path=path)
    assert [v["id"] for v in await reloaded.list_versions("rock")] == ["v2"]
