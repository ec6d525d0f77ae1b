"""
Tests for permission templates.
"""

import pytest

from cadence.core import InMemoryStore
from cadence.exceptions import NotFoundException, PersistenceException, ValidationException
from cadence.modules.templates.schemas import TemplateRole
from cadence.modules.templates.service import TemplatesService


@pytest.fixture
def service(store):
    return TemplatesService(store)


@pytest.mark.asyncio
async def test_create_and_get(service, root_actor):
    template = await service.create_template(
        "Band crew",
        [TemplateRole(user_id="alice", role="admin"), TemplateRole(user_id="bob", role="viewer")],
        root_actor,
        description="Default crew",
    )

    assert template.created_by == "root"
    assert template.created_at == template.updated_at
    assert (await service.get_template(template.id)).name == "Band crew"


@pytest.mark.asyncio
async def test_duplicate_user_in_template_rejected(service, root_actor):
    with pytest.raises(ValidationException):
        await service.create_template(
            "Twice",
            [TemplateRole(user_id="alice", role="admin"), TemplateRole(user_id="alice", role="viewer")],
            root_actor,
        )


@pytest.mark.asyncio
async def test_apply_reports_partial_failure(service, store, root_actor):
    template = await service.create_template(
        "Crew",
        [
            TemplateRole(user_id="alice", role="admin"),
            TemplateRole(user_id="bob", role="editor"),
            TemplateRole(user_id="ghost", role="viewer"),
        ],
        root_actor,
    )

    result = await service.apply_template(template.id, ["rock", "jazz"], root_actor)

    assert result.template_name == "Crew"
    assert result.success_count == 4
    assert result.failed_count == 2
    assert {f.user_id for f in result.failed} == {"ghost"}
    assert await store.get_role("jazz", "bob") == "editor"

    logs = await store.list_audit_logs(tag="rock")
    assert {e["description"] for e in logs} == {'通过模板 "Crew" 添加权限'}


@pytest.mark.asyncio
async def test_apply_overwrites_existing_roles(service, store, root_actor):
    await store.apply_permission_change(
        tag="rock", user_id="alice", mode="add", role="viewer", actor_id="root"
    )
    template = await service.create_template("Admins", [TemplateRole(user_id="alice", role="admin")], root_actor)

    result = await service.apply_template(template.id, ["rock", "rock"], root_actor)

    assert [a.action for a in result.succeeded] == ["update"]
    assert await store.get_role("rock", "alice") == "admin"


@pytest.mark.asyncio
async def test_missing_template(service, root_actor):
    with pytest.raises(NotFoundException):
        await service.apply_template("nope", ["rock"], root_actor)
    with pytest.raises(NotFoundException):
        await service.delete_template("nope", root_actor)


@pytest.mark.asyncio
async def test_list_and_delete(service, root_actor):
    first = await service.create_template("One", [TemplateRole(user_id="alice", role="viewer")], root_actor)
    await service.create_template("Two", [TemplateRole(user_id="bob", role="viewer")], root_actor)

    assert {t.name for t in await service.list_templates()} == {"One", "Two"}

    await service.delete_template(first.id, root_actor)
    assert [t.name for t in await service.list_templates()] == ["Two"]


class TestTemplatesApi:
    def test_create_list_apply(self, client, admin_headers):
        created = client.post(
            "/tags/templates",
            json={"name": "Crew", "roles": [{"user_id": "alice", "role": "editor"}]},
            headers=admin_headers,
        )
        assert created.status_code == 201
        template_id = created.json()["id"]

        listing = client.get("/tags/templates", headers=admin_headers).json()
        assert [t["id"] for t in listing] == [template_id]

        applied = client.post(f"/tags/templates/{template_id}/apply", json={"tags": ["rock"]}, headers=admin_headers)
        assert applied.status_code == 200
        assert applied.json()["succeeded"] == [
            {"tag": "rock", "user_id": "alice", "role": "editor", "action": "add"}
        ]

    def test_non_admin_cannot_create(self, client, alice_headers):
        response = client.post(
            "/tags/templates",
            json={"name": "Crew", "roles": [{"user_id": "bob", "role": "viewer"}]},
            headers=alice_headers,
        )
        assert response.status_code == 403

    def test_apply_requires_edit_rights(self, client, admin_headers, alice_headers):
        created = client.post(
            "/tags/templates",
            json={"name": "Crew", "roles": [{"user_id": "bob", "role": "viewer"}]},
            headers=admin_headers,
        ).json()

        response = client.post(f"/tags/templates/{created['id']}/apply", json={"tags": ["rock"]}, headers=alice_headers)
        assert response.status_code == 403

    def test_delete(self, client, admin_headers):
        created = client.post(
            "/tags/templates",
            json={"name": "Crew", "roles": [{"user_id": "bob", "role": "viewer"}]},
            headers=admin_headers,
        ).json()

        assert client.delete(f"/tags/templates/{created['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/tags/templates/{created['id']}", headers=admin_headers).status_code == 404


class _IdentityOutageStore(InMemoryStore):
    async def get_identities(self, user_ids):
        raise PersistenceException("get_identities")


@pytest.mark.asyncio
async def test_apply_counts_committed_roles_when_notification_lookup_fails(store, root_actor):
    outage = _IdentityOutageStore()
    outage._users = dict(store._users)
    service = TemplatesService(outage)
    template = await service.create_template("Editors", [TemplateRole(user_id="alice", role="editor")], root_actor)

    result = await service.apply_template(template.id, ["rock"], root_actor)

    assert result.failed == []
    assert [a.user_id for a in result.succeeded] == ["alice"]
    assert await outage.get_role("rock", "alice") == "editor"
    assert len(await outage.list_audit_logs()) == 1
