"""Tests for the Supabase-backed store.

The Supabase client is replaced with a small fake that records the query
chain; PostgREST errors are raised as APIError with a SQLSTATE code.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from cadence.config import Settings
from cadence.core import supabase_store as supabase_store_module
from cadence.core.supabase_store import SupabaseStore
from cadence.exceptions import (
    ConflictException,
    DuplicateAssignmentException,
    NotFoundException,
    PersistenceException,
)


def _api_error(code: str) -> APIError:
    return APIError({"message": f"error {code}", "code": code, "hint": None, "details": None})


class _FakeQuery:
    def __init__(self, table: str, data=None, error: APIError | None = None):
        self.table = table
        self.calls: list[tuple] = []
        self._data = data if data is not None else []
        self._error = error

    def __getattr__(self, name):
        def _record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return _record

    def execute(self):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(data=self._data)


class _FakeSupabase:
    def __init__(self):
        self.queries: list[_FakeQuery] = []
        self.rpc_calls: list[tuple[str, dict]] = []
        self.next_data = None
        self.next_error: APIError | None = None

    def table(self, name: str):
        query = _FakeQuery(name, self.next_data, self.next_error)
        self.queries.append(query)
        return query

    def rpc(self, fn: str, params: dict):
        self.rpc_calls.append((fn, params))
        return _FakeQuery(fn, self.next_data, self.next_error)


@pytest.fixture
def fake():
    return _FakeSupabase()


@pytest.fixture
def supabase_store(fake):
    return SupabaseStore(client=fake)


@pytest.mark.asyncio
async def test_apply_permission_change_calls_rpc(fake, supabase_store):
    fake.next_data = [{"id": "a1", "tag": "rock", "user_id": "alice", "action": "add"}]

    entry = await supabase_store.apply_permission_change(
        tag="rock", user_id="alice", mode="add", role="viewer", actor_id="root"
    )

    assert entry["id"] == "a1"
    fn, params = fake.rpc_calls[0]
    assert fn == "apply_tag_permission_change"
    assert params["p_mode"] == "add"
    assert params["p_role"] == "viewer"
    assert params["p_actor_id"] == "root"


@pytest.mark.parametrize(
    "code,exc_type",
    [
        ("23505", DuplicateAssignmentException),
        ("P0002", NotFoundException),
        ("23503", NotFoundException),
        ("XX000", PersistenceException),
    ],
)
@pytest.mark.asyncio
async def test_apply_permission_change_maps_errors(fake, supabase_store, code, exc_type):
    fake.next_error = _api_error(code)

    with pytest.raises(exc_type):
        await supabase_store.apply_permission_change(
            tag="rock", user_id="alice", mode="add", role="viewer", actor_id="root"
        )


@pytest.mark.asyncio
async def test_duplicate_edge_is_conflict(fake, supabase_store):
    fake.next_error = _api_error("23505")

    with pytest.raises(ConflictException):
        await supabase_store.insert_edge("music", "rock")


@pytest.mark.asyncio
async def test_delete_missing_edge(fake, supabase_store):
    fake.next_data = []

    with pytest.raises(NotFoundException):
        await supabase_store.delete_edge("music", "rock")


@pytest.mark.asyncio
async def test_generic_failure_is_persistence_error(fake, supabase_store):
    fake.next_error = _api_error("08006")

    with pytest.raises(PersistenceException) as exc:
        await supabase_store.list_edges()
    assert exc.value.message == "Storage operation failed"


@pytest.mark.asyncio
async def test_list_audit_logs_filters_and_orders(fake, supabase_store):
    fake.next_data = [{"id": "a1"}]

    rows = await supabase_store.list_audit_logs(tag="rock", limit=10)

    assert rows == [{"id": "a1"}]
    query = fake.queries[0]
    assert query.table == "tag_permission_audit"
    names = [c[0] for c in query.calls]
    assert names == ["select", "eq", "order", "limit"]
    assert query.calls[2] == ("order", ("timestamp",), {"desc": True})


@pytest.mark.asyncio
async def test_get_identities_skips_empty_lookup(fake, supabase_store):
    assert await supabase_store.get_identities([]) == {}
    assert fake.queries == []


@pytest.mark.asyncio
async def test_mark_all_notifications_read_counts_rows(fake, supabase_store):
    fake.next_data = [{"id": "n1"}, {"id": "n2"}]
    assert await supabase_store.mark_all_notifications_read("bob") == 2


@pytest.mark.asyncio
async def test_delete_version_filters_by_id_and_tag(fake, supabase_store):
    fake.next_data = []
    assert await supabase_store.delete_version("rock", "v1") is False

    query = fake.queries[0]
    assert query.table == "tag_versions"
    assert query.calls == [("delete", (), {}), ("eq", ("id", "v1"), {}), ("eq", ("tag", "rock"), {})]

def test_client_built_from_settings(monkeypatch):
    created = {}

    def _fake_create_client(supabase_url, supabase_key):
        created.update(url=supabase_url, key=supabase_key)
        return _FakeSupabase()

    monkeypatch.setattr(supabase_store_module, "create_client", _fake_create_client)
    monkeypatch.setenv("SUPABASE_URL", "https://cadence.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")

    store = SupabaseStore(settings=Settings())

    assert created == {"url": "https://cadence.supabase.co", "key": "service-key"}
    assert isinstance(store._client, _FakeSupabase)
