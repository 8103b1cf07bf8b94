from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from flame_api.db import get_db
from flame_api.db.collections import MESSAGES_COLLECTION
from flame_api.repositories.match import MatchRepository
from flame_api.repositories.message import MessageRepository


async def _matched_pair(api_client, register_user, prefix: str):
    first = await register_user(f"{prefix}-1@example.com", name="First")
    second = await register_user(f"{prefix}-2@example.com", name="Second")
    for actor, target in ((first, second), (second, first)):
        response = await api_client.post(
            "/api/interactions",
            json={"target_user_id": target["id"], "interaction_type": "like"},
            headers=actor["headers"],
        )
        assert response.status_code == 201, response.text
    match = await MatchRepository(get_db()).get_by_pair(first["id"], second["id"])
    assert match is not None
    return first, second, match


@pytest.mark.asyncio
async def test_participants_exchange_messages(api_client, register_user) -> None:
    first, second, match = await _matched_pair(api_client, register_user, "chat")

    sent = await api_client.post(f"/api/messages/{match.id}", json={"content": "  Olá!  "}, headers=first["headers"])
    assert sent.status_code == 201, sent.text
    body = sent.json()
    assert body["content"] == "Olá!"
    assert body["sender_id"] == first["id"]
    assert body["read_at"] is None

    reply = await api_client.post(f"/api/messages/{match.id}", json={"content": "Oi"}, headers=second["headers"])
    assert reply.status_code == 201

    listed = await api_client.get(f"/api/messages/{match.id}", headers=second["headers"])
    assert listed.status_code == 200
    assert "no-store" in listed.headers["cache-control"]
    contents = [m["content"] for m in listed.json()]
    assert sorted(contents) == ["Oi", "Olá!"]
    senders = {m["sender"]["id"]: m["sender"]["name"] for m in listed.json()}
    assert senders == {first["id"]: "First", second["id"]: "Second"}

    summary = await api_client.get("/api/matches", headers=first["headers"])
    assert summary.json()[0]["message_count"] == 2


@pytest.mark.asyncio
async def test_non_participant_cannot_send_or_read(api_client, register_user) -> None:
    _, _, match = await _matched_pair(api_client, register_user, "private")
    outsider = await register_user("outsider@example.com")

    sent = await api_client.post(f"/api/messages/{match.id}", json={"content": "hey"}, headers=outsider["headers"])
    assert sent.status_code == 403
    assert sent.json() == {"error": "You are not a participant in this match"}
    assert await get_db()[MESSAGES_COLLECTION].count_documents({}) == 0

    listed = await api_client.get(f"/api/messages/{match.id}", headers=outsider["headers"])
    assert listed.status_code == 403

    detail = await api_client.get(f"/api/matches/{match.id}", headers=outsider["headers"])
    assert detail.status_code == 403


@pytest.mark.asyncio
async def test_empty_message_and_unknown_match(api_client, register_user) -> None:
    first, _, match = await _matched_pair(api_client, register_user, "empty")

    blank = await api_client.post(f"/api/messages/{match.id}", json={"content": "   "}, headers=first["headers"])
    assert blank.status_code == 400
    assert blank.json() == {"error": "Message content is required"}

    missing = await api_client.post(
        f"/api/messages/{uuid.uuid4()}",
        json={"content": "hello"},
        headers=first["headers"],
    )
    assert missing.status_code == 404
    assert missing.json() == {"error": "Match not found"}
    assert await get_db()[MESSAGES_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_messages_listed_in_chronological_order(api_client, register_user) -> None:
    first, second, match = await _matched_pair(api_client, register_user, "order")
    repo = MessageRepository(get_db())
    base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    # Inserted out of order on purpose
    for minutes, sender in ((2, first), (0, second), (1, first), (3, second)):
        await repo.create(
            match_id=match.id,
            sender_id=sender["id"],
            content=f"m{minutes}",
            created_at=base + timedelta(minutes=minutes),
        )

    listed = await api_client.get(f"/api/messages/{match.id}", headers=first["headers"])
    assert [m["content"] for m in listed.json()] == ["m0", "m1", "m2", "m3"]

    latest_two = await api_client.get(f"/api/messages/{match.id}?limit=2", headers=first["headers"])
    assert [m["content"] for m in latest_two.json()] == ["m2", "m3"]

    older = await api_client.get(f"/api/messages/{match.id}?limit=2&offset=2", headers=first["headers"])
    assert [m["content"] for m in older.json()] == ["m0", "m1"]


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(api_client, register_user) -> None:
    first, second, match = await _matched_pair(api_client, register_user, "read")
    sent = await api_client.post(f"/api/messages/{match.id}", json={"content": "read me"}, headers=first["headers"])
    message_id = sent.json()["id"]

    once = await api_client.patch(f"/api/messages/{message_id}/read", headers=second["headers"])
    assert once.status_code == 200
    assert once.json()["success"] is True
    read_at = once.json()["read_at"]
    assert read_at is not None

    twice = await api_client.patch(f"/api/messages/{message_id}/read", headers=second["headers"])
    assert twice.status_code == 200
    assert twice.json()["read_at"] == read_at

    stored = await MessageRepository(get_db()).get_by_id(message_id)
    assert stored is not None and stored.read_at is not None


@pytest.mark.asyncio
async def test_mark_read_requires_participant(api_client, register_user) -> None:
    first, _, match = await _matched_pair(api_client, register_user, "readguard")
    outsider = await register_user("peeker@example.com")
    sent = await api_client.post(f"/api/messages/{match.id}", json={"content": "secret"}, headers=first["headers"])

    denied = await api_client.patch(f"/api/messages/{sent.json()['id']}/read", headers=outsider["headers"])
    assert denied.status_code == 403

    missing = await api_client.patch(f"/api/messages/{uuid.uuid4()}/read", headers=first["headers"])
    assert missing.status_code == 404
    assert missing.json() == {"error": "Message not found"}

    stored = await MessageRepository(get_db()).get_by_id(sent.json()["id"])
    assert stored is not None and stored.read_at is None


@pytest.mark.asyncio
async def test_can_participate(api_client, register_user) -> None:
    from flame_api.services.conversation_service import get_conversation_gate

    first, second, match = await _matched_pair(api_client, register_user, "gate")
    outsider = await register_user("gate-out@example.com")
    gate = get_conversation_gate()

    assert await gate.can_participate(match.id, first["id"]) is True
    assert await gate.can_participate(match.id, second["id"]) is True
    assert await gate.can_participate(match.id, outsider["id"]) is False
    assert await gate.can_participate(str(uuid.uuid4()), first["id"]) is False


@pytest.mark.asyncio
async def test_same_timestamp_messages_keep_a_stable_order(api_client, register_user) -> None:
    first, second, match = await _matched_pair(api_client, register_user, "tie")
    repo = MessageRepository(get_db())
    stamp = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
    created = [
        await repo.create(match_id=match.id, sender_id=sender["id"], content=text, created_at=stamp)
        for sender, text in ((first, "a"), (second, "b"), (first, "c"))
    ]
    by_id = sorted(created, key=lambda doc: doc.id)

    listed = await api_client.get(f"/api/messages/{match.id}", headers=first["headers"])
    assert [m["id"] for m in listed.json()] == [doc.id for doc in by_id]

    newest = await api_client.get(f"/api/messages/{match.id}?limit=1", headers=first["headers"])
    assert [m["id"] for m in newest.json()] == [by_id[-1].id]
