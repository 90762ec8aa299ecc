import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from main import app
from tests.helpers import (
    BASE_TIME,
    make_contact,
    make_message,
    make_queues,
    make_ticket,
    make_user,
    minutes,
)


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_list_tickets_endpoint(client: AsyncClient, db):
    q1, q2 = await make_queues(db, 1, 2)
    await make_user(db, 1, queues=[q1])
    contact = await make_contact(db, name="Maria Silva")
    mine = await make_ticket(db, contact, queue_id=1, user_id=1)
    await make_ticket(db, contact, queue_id=2, user_id=1)
    await db.commit()

    resp = await client.get("/tickets", headers={"X-User-ID": "1"})
    assert resp.status_code == 200
    data = resp.json()
    assert set(data) == {"tickets", "count", "hasMore"}
    assert data["count"] == 1 and data["hasMore"] is False
    ticket = data["tickets"][0]
    assert ticket["id"] == mine.id
    assert ticket["contact"]["name"] == "Maria Silva"
    assert ticket["queue"] == {"id": 1, "name": "Queue 1", "color": "#000001"}
    assert ticket["whatsapp"] is None


@pytest.mark.asyncio
async def test_endpoint_passes_filters_through(client: AsyncClient, db):
    await make_queues(db, 1, 2, 3)
    await make_user(db, 1, profile="admin")
    contact = await make_contact(db, name="Someone")
    t2 = await make_ticket(db, contact, queue_id=2, status="open", unread=1)
    t3 = await make_ticket(db, contact, queue_id=3, status="open", unread=0,
                           updated_at=BASE_TIME + minutes(5))
    await make_ticket(db, contact, queue_id=1, status="open", unread=2)
    await make_message(db, t2, "printer is on fire")
    await db.commit()

    params = [("queueIds", "2"), ("queueIds", "3"), ("showAll", "true")]
    resp = await client.get("/tickets", params=params, headers={"X-User-ID": "1"})
    assert [t["id"] for t in resp.json()["tickets"]] == [t3.id, t2.id]

    resp = await client.get(
        "/tickets",
        params=params + [("withUnreadMessages", "true")],
        headers={"X-User-ID": "1"},
    )
    assert [t["id"] for t in resp.json()["tickets"]] == [t2.id]

    resp = await client.get(
        "/tickets",
        params=params + [("searchParam", "FIRE")],
        headers={"X-User-ID": "1"},
    )
    data = resp.json()
    assert [t["id"] for t in data["tickets"]] == [t2.id]
    assert data["tickets"][0]["messages"][0]["body"] == "printer is on fire"


@pytest.mark.asyncio
async def test_unknown_user_returns_404(client: AsyncClient):
    resp = await client.get("/tickets", headers={"X-User-ID": "77"})
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_bad_date_returns_400(client: AsyncClient, db):
    await make_user(db, 1)
    await db.commit()
    resp = await client.get(
        "/tickets", params={"date": "not-a-date"}, headers={"X-User-ID": "1"}
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_bad_page_number_returns_400(client: AsyncClient, db):
    await make_user(db, 1)
    await db.commit()
    resp = await client.get(
        "/tickets", params={"pageNumber": "zero"}, headers={"X-User-ID": "1"}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_huge_page_number_returns_empty_page(client: AsyncClient, db):
    await make_user(db, 1, profile="admin")
    contact = await make_contact(db)
    await make_ticket(db, contact, user_id=1)
    await db.commit()
    resp = await client.get(
        "/tickets",
        params={"pageNumber": "300000000000000000"},
        headers={"X-User-ID": "1"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"tickets": [], "count": 1, "hasMore": False}


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"X-User-ID": "abc"}])
async def test_missing_or_invalid_user_header_returns_401(client: AsyncClient, headers):
    resp = await client.get("/tickets", headers=headers)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client: AsyncClient, db):
    await make_user(db, 1)
    await db.commit()
    resp = await client.get(
        "/tickets", headers={"X-User-ID": "1", "X-Request-ID": "abc123"}
    )
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "abc123"
    assert resp.headers["X-Correlation-ID"] == "abc123"
