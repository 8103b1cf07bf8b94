from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone

import pytest

from flame_api.db import get_db
from flame_api.db.collections import INTERACTIONS_COLLECTION, MATCHES_COLLECTION
from flame_api.models.interaction import InteractionType
from flame_api.repositories.interaction import InteractionRepository
from flame_api.repositories.match import MatchRepository, canonical_pair
from flame_api.services.interaction_service import MatchPromoter


async def _interact(api_client, actor, target_id, interaction_type="like", **extra):
    return await api_client.post(
        "/api/interactions",
        json={"target_user_id": target_id, "interaction_type": interaction_type, **extra},
        headers=actor["headers"],
    )


@pytest.mark.asyncio
async def test_reciprocal_likes_create_one_match(api_client, register_user) -> None:
    alice = await register_user("alice@example.com", name="Alice")
    bob = await register_user("bob@example.com", name="Bob")

    first = await _interact(api_client, alice, bob["id"])
    assert first.status_code == 201, first.text
    assert first.json()["matched"] is False
    assert first.json()["interaction"]["interaction_type"] == "like"

    second = await _interact(api_client, bob, alice["id"])
    assert second.status_code == 201, second.text
    assert second.json()["matched"] is True

    matches = await get_db()[MATCHES_COLLECTION].find({}).to_list(length=None)
    assert len(matches) == 1
    low, high = canonical_pair(alice["id"], bob["id"])
    assert matches[0]["user_id_1"] == low
    assert matches[0]["user_id_2"] == high

    listed = await api_client.get("/api/matches", headers=alice["headers"])
    assert listed.status_code == 200
    payload = listed.json()
    assert len(payload) == 1
    assert payload[0]["other_user"]["id"] == bob["id"]
    assert payload[0]["other_user"]["name"] == "Bob"
    assert payload[0]["message_count"] == 0


@pytest.mark.asyncio
async def test_one_sided_like_and_pass_do_not_match(api_client, register_user) -> None:
    alice = await register_user("a1@example.com")
    bob = await register_user("b1@example.com")

    liked = await _interact(api_client, alice, bob["id"])
    passed = await _interact(api_client, bob, alice["id"], "pass")
    assert liked.json()["matched"] is False
    assert passed.status_code == 201
    assert passed.json()["matched"] is False
    assert await get_db()[MATCHES_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_concurrent_reciprocal_likes_yield_single_match(api_client, register_user) -> None:
    alice = await register_user("c1@example.com")
    bob = await register_user("c2@example.com")

    first, second = await asyncio.gather(
        _interact(api_client, alice, bob["id"]),
        _interact(api_client, bob, alice["id"]),
    )
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["matched"] or second.json()["matched"]
    assert await get_db()[MATCHES_COLLECTION].count_documents({}) == 1


@pytest.mark.asyncio
async def test_promoter_reports_existing_match_on_duplicate(api_client, register_user) -> None:
    alice = await register_user("p1@example.com")
    bob = await register_user("p2@example.com")
    db = get_db()
    interactions = InteractionRepository(db)
    matches = MatchRepository(db)

    await _interact(api_client, alice, bob["id"])
    await _interact(api_client, bob, alice["id"])

    existing = await matches.get_by_pair(alice["id"], bob["id"])
    promoted = await MatchPromoter(interactions, matches).promote(alice["id"], bob["id"])
    assert promoted is not None
    assert existing is not None
    assert promoted.id == existing.id
    assert await db[MATCHES_COLLECTION].count_documents({}) == 1


@pytest.mark.asyncio
async def test_duplicate_interaction_conflicts_without_new_row(api_client, register_user) -> None:
    alice = await register_user("d1@example.com")
    bob = await register_user("d2@example.com")

    assert (await _interact(api_client, alice, bob["id"])).status_code == 201
    again = await _interact(api_client, alice, bob["id"])
    assert again.status_code == 409
    assert again.json() == {"error": "You have already interacted with this user in this way"}

    # A different type towards the same target is a separate interaction
    favorite = await _interact(api_client, alice, bob["id"], "favorite")
    assert favorite.status_code == 201

    assert await get_db()[INTERACTIONS_COLLECTION].count_documents({"user_id": alice["id"]}) == 2


@pytest.mark.asyncio
async def test_self_interaction_rejected(api_client, register_user) -> None:
    alice = await register_user("self@example.com")

    response = await _interact(api_client, alice, alice["id"])
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot interact with yourself"}
    assert await get_db()[INTERACTIONS_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_invalid_type_and_unknown_target(api_client, register_user) -> None:
    alice = await register_user("v1@example.com")
    bob = await register_user("v2@example.com")

    bad_type = await _interact(api_client, alice, bob["id"], "wink")
    assert bad_type.status_code == 400
    assert "error" in bad_type.json()

    bad_id = await _interact(api_client, alice, "not-a-uuid")
    assert bad_id.status_code == 400

    unknown = await _interact(api_client, alice, str(uuid.uuid4()))
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Target user not found"}

    assert await get_db()[INTERACTIONS_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_comment_requires_text(api_client, register_user) -> None:
    alice = await register_user("m1@example.com")
    bob = await register_user("m2@example.com")

    empty = await _interact(api_client, alice, bob["id"], "comment", comment_text="   ")
    assert empty.status_code == 400

    ok = await _interact(api_client, alice, bob["id"], "comment", comment_text="Nice photos!")
    assert ok.status_code == 201
    assert ok.json()["interaction"]["comment_text"] == "Nice photos!"


@pytest.mark.asyncio
async def test_stats_and_own_interaction_listing(api_client, register_user) -> None:
    alice = await register_user("s1@example.com")
    bob = await register_user("s2@example.com")
    carol = await register_user("s3@example.com")

    await _interact(api_client, bob, alice["id"])
    await _interact(api_client, carol, alice["id"])
    await _interact(api_client, carol, alice["id"], "comment", comment_text="hi")
    await _interact(api_client, alice, bob["id"])

    stats = await api_client.get("/api/interactions/stats", headers=alice["headers"])
    assert stats.status_code == 200
    assert stats.json() == {"likes": 2, "matches": 1, "comments": 1}

    own = await api_client.get(f"/api/interactions/user/{carol['id']}", headers=carol["headers"])
    assert own.status_code == 200
    assert {item["interaction_type"] for item in own.json()} == {"like", "comment"}

    other = await api_client.get(f"/api/interactions/user/{carol['id']}", headers=alice["headers"])
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_racing_promotions_return_the_same_match(api_client, register_user) -> None:
    alice = await register_user("r1@example.com")
    bob = await register_user("r2@example.com")
    db = get_db()
    interactions = InteractionRepository(db)
    matches = MatchRepository(db)
    for actor, target in ((alice, bob), (bob, alice)):
        await interactions.create(
            user_id=actor["id"],
            target_user_id=target["id"],
            interaction_type=InteractionType.LIKE,
            comment_text=None,
            created_at=datetime.now(timezone.utc),
        )

    promoter = MatchPromoter(interactions, matches)
    from_alice, from_bob = await asyncio.gather(
        promoter.promote(alice["id"], bob["id"]),
        promoter.promote(bob["id"], alice["id"]),
    )
    assert from_alice is not None and from_bob is not None
    assert from_alice.id == from_bob.id
    assert await db[MATCHES_COLLECTION].count_documents({}) == 1


@pytest.mark.asyncio
async def test_repeated_like_recovers_missing_match(api_client, register_user) -> None:
    alice = await register_user("lost1@example.com")
    bob = await register_user("lost2@example.com")
    db = get_db()
    interactions = InteractionRepository(db)
    # Both likes stored but the match insert never happened
    for actor, target in ((alice, bob), (bob, alice)):
        await interactions.create(
            user_id=actor["id"],
            target_user_id=target["id"],
            interaction_type=InteractionType.LIKE,
            comment_text=None,
            created_at=datetime.now(timezone.utc),
        )
    assert await db[MATCHES_COLLECTION].count_documents({}) == 0

    again = await _interact(api_client, bob, alice["id"])
    assert again.status_code == 409
    assert again.json() == {"error": "You have already interacted with this user in this way"}
    assert await db[MATCHES_COLLECTION].count_documents({}) == 1

    once_more = await _interact(api_client, alice, bob["id"])
    assert once_more.status_code == 409
    assert await db[MATCHES_COLLECTION].count_documents({}) == 1
