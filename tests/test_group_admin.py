import asyncio
import json

from admin_client.core.constants import MutationOutcome
from admin_client.services.group_admin_service import GroupAdminService

GROUPS = [
    {
        "id": 10,
        "name": "Red Team",
        "members_count": 2,
        "members": [
            {"user_id": 1, "username": "alice", "is_admin": True},
            {"user_id": 2, "username": "bob", "is_admin": False},
        ],
    },
    {"id": 11, "name": "Empty", "members_count": 0, "members": []},
]


def loaded(backend, client_for, user) -> GroupAdminService:
    backend.on("GET", "/users/groups/", json=GROUPS)
    service = GroupAdminService(client_for(backend), user)
    service.mount()
    asyncio.run(service.load())
    return service


def test_filter_by_name_id_and_member(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)

    assert [g.id for g in service.filtered()] == [10, 11]
    assert [g.id for g in service.filtered(only_non_empty=True)] == [10]
    assert [g.id for g in service.filtered(search="BOB")] == [10]
    assert [g.id for g in service.filtered(search="11")] == [11]


def test_remove_member_accepts_detail_acknowledgement(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("POST", "/users/groups/10/remove-member/", json={"detail": "Member removed."})

    async def scenario():
        outcome = await service.remove_member(service.groups.get(10), 2, "bob")
        return outcome, service.message

    outcome, message = asyncio.run(scenario())

    group = service.groups.get(10)
    assert outcome == MutationOutcome.COMMITTED
    assert [m.username for m in group.members] == ["alice"]
    assert group.members_count == 1
    assert message == "Member removed."
    assert json.loads(backend.calls[-1].content) == {"user_id": 2}


def test_remove_member_error_restores_group(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("POST", "/users/groups/10/remove-member/", json={"error": "Cannot remove the group admin."})

    outcome = asyncio.run(service.remove_member(service.groups.get(10), 1, "alice"))

    group = service.groups.get(10)
    assert outcome == MutationOutcome.FAILED
    assert group.members_count == 2
    assert [m.username for m in group.members] == ["alice", "bob"]
    assert service.error.message == "Cannot remove the group admin."


def test_members_count_never_negative(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("POST", "/users/groups/11/remove-member/", json={"detail": "ok"})

    asyncio.run(service.remove_member(service.groups.get(11), 99, "ghost"))

    assert service.groups.get(11).members_count == 0


def test_delete_group(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("DELETE", "/users/groups/11/", json={"detail": "Group deleted."})

    async def scenario():
        outcome = await service.delete_group(service.groups.get(11))
        return outcome, service.message

    outcome, message = asyncio.run(scenario())

    assert outcome == MutationOutcome.COMMITTED
    assert [g.id for g in service.groups.values()] == [10]
    assert message == 'Group "Empty" has been deleted.'


def test_delete_group_failure_restores_order(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("DELETE", "/users/groups/10/", status=404)

    outcome = asyncio.run(service.delete_group(service.groups.get(10)))

    assert outcome == MutationOutcome.FAILED
    assert [g.id for g in service.groups.values()] == [10, 11]
    assert service.error.message == "Not found."
