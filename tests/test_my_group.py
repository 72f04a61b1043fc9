import asyncio
import json

import httpx

from admin_client.core.constants import MutationOutcome
from admin_client.services.my_group_service import MyGroupService

DASHBOARD = "/api/users/groups/me/dashboard/"
INCOMING = "/api/users/groups/me/invitations/"

DASHBOARD_BODY = {
    "group": {"id": 5, "name": "Blue", "min_members": 2, "max_members": 4, "is_admin": True},
    "members": [
        {"id": 2, "username": "student", "email": "student@example.com", "is_admin": True},
        {"id": 3, "username": "dave", "email": "dave@example.com", "is_admin": False},
    ],
    "pending_invites": [
        {"id": 40, "user": {"id": 4, "username": "erin", "email": "erin@example.com"}, "status": "pending"},
    ],
}

INCOMING_BODY = [
    {"id": 70, "status": "pending", "group": {"id": 8, "name": "Green"}, "invited_by": {"id": 9, "username": "gus"}},
    {"id": 71, "status": "pending", "group": {"id": 9, "name": "Gold"}, "invited_by": None},
]


def loaded(backend, client_for, user) -> MyGroupService:
    backend.on("GET", DASHBOARD, json=DASHBOARD_BODY)
    backend.on("GET", INCOMING, json=INCOMING_BODY)
    service = MyGroupService(client_for(backend), user)
    service.mount()
    asyncio.run(service.load())
    return service


def test_any_signed_in_user_can_open(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)

    assert service.redirect_to is None
    assert service.group.name == "Blue"
    assert service.admin_member.username == "student"
    assert [m.id for m in service.members.values()] == [2, 3]
    assert [i.id for i in service.pending_invites] == [40]
    assert [i.group.name for i in service.incoming.values()] == ["Green", "Gold"]


def test_anonymous_user_is_rejected(backend, client_for):
    service = MyGroupService(client_for(backend), None)
    service.mount()

    asyncio.run(service.load())

    assert service.redirect_to == "/dashboard"
    assert backend.calls == []


def test_incoming_invite_failure_is_silent(backend, client_for, student_user):
    backend.on("GET", DASHBOARD, json=DASHBOARD_BODY)
    backend.on("GET", INCOMING, status=500)
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    asyncio.run(service.load())

    assert service.error is None
    assert service.group.id == 5
    assert len(service.incoming) == 0


def test_dashboard_semantic_error(backend, client_for, student_user):
    backend.on("GET", DASHBOARD, json={"error": "Profile incomplete."})
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    asyncio.run(service.load())

    assert service.error.message == "Profile incomplete."
    assert service.group is None


def test_create_group_validation(backend, client_for, student_user):
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    async def attempt(*args):
        await service.create_group(*args)
        return service.error.message

    assert asyncio.run(attempt("  ", 2, 4)) == "Group name is required."
    assert asyncio.run(attempt("Blue", "", 4)) == "Min and Max members are required."
    assert asyncio.run(attempt("Blue", "2a", 4)) == "Min/Max must be numbers only."
    assert asyncio.run(attempt("Blue", 1, 4)) == "Minimum members must be at least 2."
    assert asyncio.run(attempt("Blue", 2, 11)) == "Maximum members cannot exceed 10."
    assert asyncio.run(attempt("Blue", 5, 3)) == "Minimum members cannot be greater than maximum members."
    assert backend.calls == []


def test_create_group_posts_and_reloads(backend, client_for, student_user):
    backend.on("POST", "/api/users/groups/", status=201, json={"id": 5, "name": "Blue"})
    backend.on("GET", DASHBOARD, json=DASHBOARD_BODY)
    backend.on("GET", INCOMING, json=[])
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    async def scenario():
        ok = await service.create_group(" Blue ", "2", "4")
        return ok, service.message

    ok, message = asyncio.run(scenario())

    assert ok is True
    assert message == "Group created successfully."
    assert json.loads(backend.calls[0].content) == {"name": "Blue", "min_members": 2, "max_members": 4}
    assert service.group.id == 5


def test_remove_member_is_optimistic(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/remove-member/", status=204)
    dave = service.members.get(3)

    async def scenario():
        outcome = await service.remove_member(dave, confirm=lambda: True)
        return outcome, service.message

    outcome, message = asyncio.run(scenario())

    assert outcome == MutationOutcome.COMMITTED
    assert [m.id for m in service.members.values()] == [2]
    assert message == "Member dave has been removed from the group."


def test_remove_member_failure_restores_members(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/remove-member/", status=400, json={"detail": "Group below minimum."})

    outcome = asyncio.run(service.remove_member(service.members.get(3)))

    assert outcome == MutationOutcome.FAILED
    assert [m.id for m in service.members.values()] == [2, 3]
    assert service.error.message == "Group below minimum."


def test_delete_group_clears_state(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("DELETE", "/api/users/groups/5/", status=204)

    assert asyncio.run(service.delete_group(confirm=lambda: False)) is False
    assert service.group is not None

    async def scenario():
        ok = await service.delete_group(confirm=lambda: True)
        return ok, service.message

    ok, message = asyncio.run(scenario())
    assert ok is True
    assert message == "Group deleted."
    assert service.group is None
    assert len(service.members) == 0


def test_set_admin_reloads(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/set-admin/", json={"id": 5, "name": "Blue", "min_members": 2, "max_members": 4})
    before = len(backend.calls)

    async def scenario():
        ok = await service.set_admin(service.members.get(3))
        return ok, service.message

    ok, message = asyncio.run(scenario())

    assert ok is True
    assert message == '"dave" is now the group admin.'
    assert backend.paths()[before:] == ["/api/users/groups/5/set-admin/", DASHBOARD, INCOMING]


def test_search_users_is_silent(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("GET", "/api/users/groups/search-users/", json=[{"id": 4, "username": "erin"}])

    assert asyncio.run(service.search_users("   ")) == []
    results = asyncio.run(service.search_users("er"))
    assert [u.username for u in results] == ["erin"]
    assert backend.calls[-1].url.params["q"] == "er"

    backend.on("GET", "/api/users/groups/search-users/", status=500)
    assert asyncio.run(service.search_users("er")) == []
    assert service.error is None


def test_send_invite_names_user(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("GET", "/api/users/groups/search-users/", json=[{"id": 4, "username": "erin"}])
    backend.on("POST", "/api/users/groups/5/invitations/", status=201, json={"id": 41, "status": "pending"})
    asyncio.run(service.search_users("erin"))

    async def scenario():
        ok = await service.send_invite(4)
        return ok, service.message

    ok, message = asyncio.run(scenario())

    assert ok is True
    assert message == "Invitation sent to erin."


def test_send_invite_semantic_error(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/invitations/", json={"detail": "User already invited."})

    assert asyncio.run(service.send_invite(4)) is False
    assert service.error.message == "User already invited."


def test_accept_and_decline(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/invitations/70/accept/", json={"ok": True})
    backend.on("POST", "/api/users/groups/invitations/71/decline/", status=204)

    async def accept():
        ok = await service.accept_invite(70)
        return ok, service.message

    ok, message = asyncio.run(accept())
    assert ok is True
    assert message == "Invitation accepted. You joined the group."

    async def decline():
        outcome = await service.decline_invite(71)
        return outcome, service.message

    outcome, message = asyncio.run(decline())
    assert outcome == MutationOutcome.COMMITTED
    assert message == "Invitation declined."
    assert [i.id for i in service.incoming.values()] == [70]


def test_dashboard_failure_reports_false(backend, client_for, student_user):
    backend.on("GET", DASHBOARD, status=500)
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    assert asyncio.run(service.load()) is False
    assert service.error.message == "Server error. Please try again."


def test_unmount_during_reload_leaves_view_untouched(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/invitations/", status=201, json={"id": 41, "status": "pending"})

    def leave_page(request):
        service.unmount()
        return httpx.Response(200, json=DASHBOARD_BODY)

    backend.handle("GET", DASHBOARD, leave_page)

    ok = asyncio.run(service.send_invite(4))

    assert ok is False
    assert service.view.alive is False
    assert service.message is None
    assert service.error is None


def test_unmount_during_confirmation_skips_delete(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("DELETE", "/api/users/groups/5/", status=204)

    async def confirm_then_leave():
        service.unmount()
        return True

    assert asyncio.run(service.delete_group(confirm=confirm_then_leave)) is False
    assert backend.paths("DELETE") == []
    assert service.group is not None


def test_concurrent_invites_send_one_request(backend, client_for, student_user):
    service = loaded(backend, client_for, student_user)
    backend.on("POST", "/api/users/groups/5/invitations/", status=201, json={"id": 41, "status": "pending"})
    backend.delay = 0.01

    async def scenario():
        results = await asyncio.gather(service.send_invite(4), service.send_invite(4))
        return results, service.message

    results, message = asyncio.run(scenario())

    assert results == [True, False]
    assert backend.paths("POST") == ["/api/users/groups/5/invitations/"]
    assert message == "Invitation sent to user #4."


def test_concurrent_create_sends_one_request(backend, client_for, student_user):
    backend.on("POST", "/api/users/groups/", status=201, json={"id": 5, "name": "Blue"})
    backend.on("GET", DASHBOARD, json=DASHBOARD_BODY)
    backend.on("GET", INCOMING, json=[])
    backend.delay = 0.01
    service = MyGroupService(client_for(backend), student_user)
    service.mount()

    async def scenario():
        return await asyncio.gather(service.create_group("Blue", 2, 4), service.create_group("Blue", 2, 4))

    assert asyncio.run(scenario()) == [True, False]
    assert backend.paths("POST") == ["/api/users/groups/"]

    assert asyncio.run(service.create_group("Blue", 2, 4)) is True
    assert backend.paths("POST") == ["/api/users/groups/", "/api/users/groups/"]
