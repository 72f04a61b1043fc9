import asyncio
import json

from admin_client.core.constants import MutationOutcome
from admin_client.schemas.challenges import ChallengePatchRequest
from admin_client.services.challenge_admin_service import ChallengeAdminService

LIST_PATH = "/api/challenges/challenges"


def challenge(cid: int, title: str, category: str = "Web", level: str = "Easy", description: str = "") -> dict:
    return {
        "id": cid,
        "title": title,
        "description": description,
        "category": {"id": 1, "name": category},
        "difficulty": {"id": 1, "level": level},
        "solution_type": "flag",
        "group_only": False,
    }


CHALLENGES = [
    challenge(1, "SQL Injection", description="Dump the users table"),
    challenge(2, "Buffer Overflow", category="Pwn", level="Hard"),
    challenge(3, "XSS Playground", level="Medium"),
]


def loaded(backend, client_for, user, **kwargs) -> ChallengeAdminService:
    backend.on("GET", LIST_PATH, json=CHALLENGES)
    service = ChallengeAdminService(client_for(backend), user, **kwargs)
    service.mount()
    asyncio.run(service.load())
    return service


def test_load_passes_filters_as_params(backend, client_for, admin_user):
    backend.on("GET", LIST_PATH, json=[])
    service = ChallengeAdminService(client_for(backend), admin_user)
    service.mount()

    asyncio.run(service.load(category="Web", difficulty=None))

    assert dict(backend.calls[0].url.params) == {"category": "Web"}


def test_filtered_by_text_category_and_level(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)

    assert [c.id for c in service.filtered(search="users table")] == [1]
    assert [c.id for c in service.filtered(search="pwn")] == [2]
    assert [c.id for c in service.filtered(category="Web")] == [1, 3]
    assert [c.id for c in service.filtered(category="Web", difficulty="Medium")] == [3]


def test_pagination_clamps_page(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user, page_size=2)

    rows, pages = service.page(1)
    assert [c.id for c in rows] == [1, 2]
    assert pages == 2
    rows, _ = service.page(9)
    assert [c.id for c in rows] == [3]
    rows, pages = service.page(1, search="nothing matches")
    assert rows == []
    assert pages == 1


def test_delete_rolls_back_on_failure(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("DELETE", "/api/challenges/2/", status=409, json={"detail": "Challenge has submissions."})

    outcome = asyncio.run(service.delete(service.challenges.get(2), confirm=lambda: True))

    assert outcome == MutationOutcome.FAILED
    assert [c.id for c in service.challenges.values()] == [1, 2, 3]
    assert service.error.message == "Challenge has submissions."


def test_delete_success(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("DELETE", "/api/challenges/2/", status=204)

    outcome = asyncio.run(service.delete(service.challenges.get(2)))

    assert outcome == MutationOutcome.COMMITTED
    assert [c.id for c in service.challenges.values()] == [1, 3]


def test_update_splices_canonical_challenge(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    canonical = challenge(3, "XSS Playground II", category="Client-side", level="Medium")
    backend.on("PATCH", "/api/challenges/challenges/3/", json=canonical)

    outcome = asyncio.run(service.update(3, ChallengePatchRequest(title="XSS Playground II", category=4)))

    updated = service.challenges.get(3)
    assert outcome == MutationOutcome.COMMITTED
    assert updated.title == "XSS Playground II"
    assert updated.category_name == "Client-side"
    assert [c.id for c in service.challenges.values()] == [1, 2, 3]
    assert json.loads(backend.calls[-1].content) == {"title": "XSS Playground II", "category": 4}


def test_update_failure_restores_title(backend, client_for, admin_user):
    service = loaded(backend, client_for, admin_user)
    backend.on("PATCH", "/api/challenges/challenges/3/", status=400, json={"title": ["Too long."]})

    outcome = asyncio.run(service.update(3, ChallengePatchRequest(title="x" * 500)))

    assert outcome == MutationOutcome.FAILED
    assert service.challenges.get(3).title == "XSS Playground"
    assert service.error.messages == ["title: Too long."]
