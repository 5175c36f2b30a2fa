import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import update

from tourquote.models import Hotel, ListItem

TODAY = date.today()


def d(days: int) -> str:
    return (TODAY + timedelta(days=days)).isoformat()


@pytest.fixture
async def priced_hotels(client, seed):
    """Nile View: one season with Double and Triple. Desert Rose: one Double."""
    created = {}
    for hotel_id, rooms in (
        (seed.hotel_id, ((seed.room_type_id, 100), (seed.other_room_type_id, 140))),
        (seed.other_hotel_id, ((seed.room_type_id, 80),)),
    ):
        season = (await client.post(
            f"/api/hotels/{hotel_id}/seasons",
            json={"season_name_id": str(seed.season_name_id), "start_date": d(10), "end_date": d(40)},
        )).json()
        for room_type_id, amount in rooms:
            await client.post(
                f"/api/hotels/{hotel_id}/seasons/{season['id']}/rates",
                json={"room_type_id": str(room_type_id), "amount": amount},
            )
        created[hotel_id] = season

    # Ends before the searched stay begins
    await client.post(
        f"/api/hotels/{seed.hotel_id}/seasons",
        json={"start_date": d(1), "end_date": d(5)},
    )
    return created


async def search(client, **params):
    params.setdefault("arrival_date", d(15))
    params.setdefault("departure_date", d(20))
    return await client.get("/api/season-rates", params=params)


async def test_grouped_by_hotel_season_room(client, seed, priced_hotels):
    resp = await search(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["row_count"] == 3
    desert, nile = body["data"]
    assert desert["hotel_name"] == "Desert Rose"
    assert nile["hotel_name"] == "Nile View"
    assert nile["hotel_stars"] == 5

    [season] = nile["seasons"]
    assert season["season_id"] == priced_hotels[seed.hotel_id]["id"]
    assert season["season_name"] == "High"
    assert [r["room_type_name"] for r in season["rooms"]] == ["Double", "Triple"]
    assert season["rooms"][0]["start_date"] == d(10)
    assert season["rooms"][1]["amount"] == 140


async def test_room_type_filter(client, seed, priced_hotels):
    resp = await search(client, rate_for_id=str(seed.other_room_type_id))

    [hotel] = resp.json()["data"]
    assert hotel["hotel_id"] == str(seed.hotel_id)
    assert [r["room_type_name"] for r in hotel["seasons"][0]["rooms"]] == ["Triple"]


async def test_hotel_filter(client, seed, priced_hotels):
    resp = await search(client, hotel_id=str(seed.other_hotel_id))
    assert [h["hotel_name"] for h in resp.json()["data"]] == ["Desert Rose"]


async def test_pagination_applies_to_rate_rows(client, seed, priced_hotels):
    first = (await search(client, limit=1)).json()
    second = (await search(client, limit=1, offset=1)).json()

    assert first["row_count"] == 1
    assert first["data"][0]["hotel_name"] == "Desert Rose"
    assert second["data"][0]["hotel_name"] == "Nile View"
    assert second["data"][0]["seasons"][0]["rooms"][0]["room_type_name"] == "Double"


async def test_no_overlapping_season(client, seed, priced_hotels):
    resp = await search(client, arrival_date=d(100), departure_date=d(105))
    assert resp.json()["data"] == []


async def test_departure_must_follow_arrival(client, seed):
    resp = await search(client, arrival_date=d(20), departure_date=d(20))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_stay"


async def test_limit_is_bounded(client, seed):
    resp = await search(client, limit=0)
    assert resp.status_code == 422


async def test_season_starting_on_departure_is_excluded(client, seed, priced_hotels):
    # Stay d(5)..d(10): priced seasons start on the departure day
    resp = await search(client, arrival_date=d(5), departure_date=d(10))
    assert resp.json()["data"] == []


async def test_season_ending_on_arrival_is_included(client, seed, priced_hotels):
    resp = await search(client, arrival_date=d(40), departure_date=d(45))
    assert resp.json()["row_count"] == 3


async def test_ordered_by_area_then_name_then_stars(client, db, seed, priced_hotels):
    aswan = ListItem(id=uuid.uuid4(), company_id=seed.company_id, list_key="area", name="Aswan")
    luxor = ListItem(id=uuid.uuid4(), company_id=seed.company_id, list_key="area", name="Luxor")
    budget = Hotel(id=uuid.uuid4(), company_id=seed.company_id, name="Desert Rose", stars=3)
    db.add_all([aswan, luxor])
    await db.flush()
    budget.area_id = luxor.id
    db.add(budget)
    await db.execute(update(Hotel).where(Hotel.id == seed.hotel_id).values(area_id=aswan.id))
    await db.execute(update(Hotel).where(Hotel.id == seed.other_hotel_id).values(area_id=luxor.id))
    await db.commit()

    season = (await client.post(
        f"/api/hotels/{budget.id}/seasons",
        json={"start_date": d(10), "end_date": d(40)},
    )).json()
    await client.post(
        f"/api/hotels/{budget.id}/seasons/{season['id']}/rates",
        json={"room_type_id": str(seed.room_type_id), "amount": 50},
    )

    data = (await search(client)).json()["data"]

    assert [(h["hotel_area"], h["hotel_name"], h["hotel_stars"]) for h in data] == [
        ("Aswan", "Nile View", 5),
        ("Luxor", "Desert Rose", 4),
        ("Luxor", "Desert Rose", 3),
    ]
