import asyncio
from datetime import datetime, timedelta, timezone

from core.settings import settings
from crud.vote_crud import vote_crud


def poll_payload(**overrides):
    payload = {
        "title": "Manager of the Month",
        "nominations": [
            {"name": "Alice", "manager": "Morgan"},
            {"name": "Bob", "manager": "Riley"},
            {"name": "Carol", "manager": "Sam"},
        ],
    }
    payload.update(overrides)
    return payload


async def create_poll(client, **overrides):
    response = await client.post("/poll/", json=poll_payload(**overrides))
    assert response.status_code == 201, response.text
    poll = response.json()
    return poll, {nomination["name"]: nomination["id"] for nomination in poll["nominations"]}


async def vote(client, poll_id, nomination_id, score=7):
    return await client.post(f"/poll/{poll_id}/vote", json={"nomination_id": nomination_id, "score": score})


async def test_root_and_health(client):
    assert (await client.get("/")).json()["message"] == "Polls API"
    assert (await client.get("/health")).json()["status"] == "healthy"


async def test_create_poll_returns_open_poll_with_nominations(client):
    poll, nominations = await create_poll(client, nominations=[
        {"name": "Carol", "manager": "Sam"},
        {"name": "Alice", "manager": "Morgan"},
        {"name": "Bob", "manager": "Riley"},
    ])

    assert poll["title"] == "Manager of the Month"
    assert poll["status"] == "OPEN"
    assert poll["closure_reason"] is None
    assert poll["closed_manually"] is False
    assert poll["total_votes"] == 0
    assert poll["max_votes"] is None
    assert [nomination["name"] for nomination in poll["nominations"]] == ["Alice", "Bob", "Carol"]
    assert all(nomination["vote_count"] == 0 for nomination in poll["nominations"])
    assert all(nomination["stats"] is None for nomination in poll["nominations"])


async def test_create_poll_requires_title_and_nominations(client):
    assert (await client.post("/poll/", json=poll_payload(title="   "))).status_code == 422
    assert (await client.post("/poll/", json=poll_payload(nominations=[]))).status_code == 422
    missing_manager = poll_payload(nominations=[{"name": "Alice", "manager": ""}])
    assert (await client.post("/poll/", json=missing_manager)).status_code == 422


async def test_zero_vote_cap_is_stored_as_no_cap(client):
    poll, nominations = await create_poll(client, max_votes=0)

    assert poll["max_votes"] is None
    assert (await vote(client, poll["id"], nominations["Alice"])).status_code == 201
    assert (await client.get(f"/poll/{poll['id']}")).json()["status"] == "OPEN"


async def test_get_unknown_poll_is_404(client):
    assert (await client.get("/poll/999999")).status_code == 404


async def test_open_poll_hides_scores(client):
    poll, nominations = await create_poll(client)
    await vote(client, poll["id"], nominations["Bob"], 10)

    body = (await client.get(f"/poll/{poll['id']}")).json()

    assert body["status"] == "OPEN"
    assert body["total_votes"] == 1
    assert [nomination["name"] for nomination in body["nominations"]] == ["Bob", "Alice", "Carol"]
    assert all(nomination["stats"] is None for nomination in body["nominations"])


async def test_results_unavailable_while_open(client):
    poll, _ = await create_poll(client)

    response = await client.get(f"/poll/{poll['id']}/results")

    assert response.status_code == 409


async def test_closed_poll_shows_ranked_results(client):
    poll, nominations = await create_poll(client)
    await vote(client, poll["id"], nominations["Alice"], 8)
    await vote(client, poll["id"], nominations["Alice"], 10)
    await vote(client, poll["id"], nominations["Bob"], 9)

    closed = await client.post(f"/poll/{poll['id']}/close")
    assert closed.status_code == 200
    assert closed.json()["status"] == "CLOSED"
    assert closed.json()["closure_reason"] == "MANUAL"

    body = (await client.get(f"/poll/{poll['id']}")).json()
    assert [nomination["name"] for nomination in body["nominations"]] == ["Alice", "Bob", "Carol"]
    assert [nomination["stats"] for nomination in body["nominations"]] == [
        {"total_score": 18, "vote_count": 2, "average": 9.0},
        {"total_score": 9, "vote_count": 1, "average": 9.0},
        {"total_score": 0, "vote_count": 0, "average": 0.0},
    ]

    results = (await client.get(f"/poll/{poll['id']}/results")).json()
    assert results["status"] == "CLOSED"
    assert results["total_votes"] == 3
    assert [result["name"] for result in results["results"]] == ["Alice", "Bob", "Carol"]


async def test_close_is_idempotent_and_blocks_votes(client):
    poll, nominations = await create_poll(client)

    assert (await client.post(f"/poll/{poll['id']}/close")).status_code == 200
    assert (await client.post(f"/poll/{poll['id']}/close")).status_code == 200

    response = await vote(client, poll["id"], nominations["Alice"])
    assert response.status_code == 409
    assert response.json()["detail"] == "Poll is closed"


async def test_close_unknown_poll_is_404(client):
    assert (await client.post("/poll/424242/close")).status_code == 404


async def test_vote_cap_closes_poll(client):
    poll, nominations = await create_poll(client, max_votes=2)

    first = await vote(client, poll["id"], nominations["Alice"], 6)
    second = await vote(client, poll["id"], nominations["Bob"], 4)
    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["total_votes"] == 2

    body = (await client.get(f"/poll/{poll['id']}")).json()
    assert body["status"] == "CLOSED"
    assert body["closure_reason"] == "MAX_VOTES"
    assert body["closed_manually"] is False

    third = await vote(client, poll["id"], nominations["Carol"], 5)
    assert third.status_code == 409
    assert third.json()["detail"] == "Poll is closed (max votes reached)"


async def test_expired_poll_is_closed(client):
    expired = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    poll, nominations = await create_poll(client, expires_at=expired)

    assert poll["status"] == "CLOSED"
    assert poll["closure_reason"] == "EXPIRED"

    response = await vote(client, poll["id"], nominations["Alice"])
    assert response.status_code == 409
    assert response.json()["detail"] == "Poll is closed (expired)"


async def test_future_expiry_keeps_poll_open(client):
    expires = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
    poll, nominations = await create_poll(client, expires_at=expires)

    assert poll["status"] == "OPEN"
    assert (await vote(client, poll["id"], nominations["Alice"])).status_code == 201


async def test_vote_response_carries_fresh_counts(client):
    poll, nominations = await create_poll(client)
    await vote(client, poll["id"], nominations["Alice"], 3)

    response = await vote(client, poll["id"], nominations["Alice"], 9)

    assert response.status_code == 201
    body = response.json()
    assert body["poll_id"] == poll["id"]
    assert body["nomination_id"] == nominations["Alice"]
    assert body["score"] == 9
    assert body["total_votes"] == 2
    assert body["nomination_votes"] == 2


async def test_out_of_range_score_is_rejected(client):
    poll, nominations = await create_poll(client)

    for score in (0, 11):
        response = await vote(client, poll["id"], nominations["Alice"], score)
        assert response.status_code == 422
        assert response.json()["detail"] == "Score must be between 1 and 10"

    missing = await client.post(f"/poll/{poll['id']}/vote", json={"nomination_id": nominations["Alice"]})
    assert missing.status_code == 422

    assert (await client.get(f"/poll/{poll['id']}")).json()["total_votes"] == 0


async def test_binary_mode_scores_every_vote_as_one(client, monkeypatch):
    monkeypatch.setattr(settings, "SCORED_VOTING", False)
    poll, nominations = await create_poll(client)

    response = await client.post(f"/poll/{poll['id']}/vote", json={"nomination_id": nominations["Bob"], "score": 50})

    assert response.status_code == 201
    assert response.json()["score"] == 1


async def test_vote_for_unknown_poll_or_foreign_nomination(client):
    poll, _ = await create_poll(client)
    _, other_nominations = await create_poll(client, title="Other")

    assert (await vote(client, 999999, other_nominations["Alice"])).status_code == 404
    response = await vote(client, poll["id"], other_nominations["Alice"])
    assert response.status_code == 404
    assert (await client.get(f"/poll/{poll['id']}")).json()["total_votes"] == 0


async def test_delete_poll(client):
    poll, nominations = await create_poll(client)
    await vote(client, poll["id"], nominations["Alice"])

    response = await client.delete(f"/poll/{poll['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Poll deleted successfully", "id": poll["id"]}
    assert (await client.get(f"/poll/{poll['id']}")).status_code == 404
    assert (await client.delete(f"/poll/{poll['id']}")).status_code == 404


async def test_list_polls_is_paginated_newest_first(client):
    first, nominations = await create_poll(client, title="First", max_votes=1)
    await create_poll(client, title="Second")
    await vote(client, first["id"], nominations["Alice"])

    body = (await client.get("/poll/", params={"page": 1, "size": 10})).json()

    assert body["total"] == 2
    assert [(item["title"], item["status"], item["total_votes"]) for item in body["items"]] == [
        ("Second", "OPEN", 0),
        ("First", "CLOSED", 1),
    ]


async def test_persistence_failure_is_a_generic_500(client, monkeypatch):
    poll, nominations = await create_poll(client)

    async def broken_create_vote(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(vote_crud, "create_vote", broken_create_vote)
    response = await vote(client, poll["id"], nominations["Alice"])

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to record vote"


async def test_concurrent_votes_never_exceed_cap(client):
    poll, nominations = await create_poll(client, max_votes=1)

    responses = await asyncio.gather(*(
        vote(client, poll["id"], nominations[name], 5)
        for name in ("Alice", "Bob", "Carol", "Alice", "Bob")
    ))

    status_codes = [response.status_code for response in responses]
    assert status_codes.count(201) == 1
    assert set(status_codes) <= {201, 409}
    for response in responses:
        if response.status_code == 409:
            assert response.json()["detail"] == "Poll is closed (max votes reached)"

    body = (await client.get(f"/poll/{poll['id']}")).json()
    assert body["total_votes"] == 1
    assert body["status"] == "CLOSED"


async def test_list_polls_second_page(client):
    for title in ("One", "Two", "Three"):
        await create_poll(client, title=title)

    response = await client.get("/poll/", params={"page": 2, "size": 2})

    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["page"], body["size"], body["pages"]) == (3, 2, 2, 2)
    assert [item["title"] for item in body["items"]] == ["One"]
