"""
Tests for permission change notifications.
"""

import pytest

from cadence.exceptions import NotFoundException
from cadence.modules.notifications import NotificationService, render_permission_change


@pytest.mark.parametrize(
    "action,role,expected",
    [
        ("add", "admin", "Alice 将 Bob 添加为管理员"),
        ("update", "editor", "Alice 将 Bob 更新为编辑者"),
        ("remove", "viewer", "Alice 将 Bob 移除查看者"),
    ],
)
def test_render_permission_change(action, role, expected):
    assert render_permission_change("Bob", role, action, "Alice") == expected


@pytest.mark.asyncio
async def test_notify_and_read(store):
    service = NotificationService(store)
    created = await service.notify_permission_change(
        tag="rock", target_id="bob", target_name="Bob", role="viewer", action="add", actor_name="Alice"
    )

    assert created.read is False
    assert created.type == "tag_change"

    await service.mark_as_read(created.id, "bob")
    assert (await service.list_notifications("bob"))[0].read is True


@pytest.mark.asyncio
async def test_mark_as_read_checks_owner(store):
    service = NotificationService(store)
    created = await service.notify_permission_change(
        tag="rock", target_id="bob", target_name="Bob", role="viewer", action="add", actor_name="Alice"
    )

    with pytest.raises(NotFoundException):
        await service.mark_as_read(created.id, "alice")


@pytest.mark.asyncio
async def test_mark_all_as_read(store):
    service = NotificationService(store)
    for tag in ("rock", "jazz"):
        await service.notify_permission_change(
            tag=tag, target_id="bob", target_name="Bob", role="viewer", action="add", actor_name="Alice"
        )

    assert await service.mark_all_as_read("bob") == 2
    assert await service.mark_all_as_read("bob") == 0


class TestNotificationsApi:
    def test_target_sees_notification(self, client, admin_headers, bob_headers):
        client.post("/tags/rock/permissions", json={"user_id": "bob", "role": "editor"}, headers=admin_headers)

        items = client.get("/notifications", headers=bob_headers).json()
        assert len(items) == 1
        assert items[0]["change"]["description"] == "Root 将 Bob 添加为编辑者"

        assert client.post(f"/notifications/{items[0]['id']}/read", headers=bob_headers).status_code == 204
        assert client.post("/notifications/read-all", headers=bob_headers).json() == {"updated": 0}
