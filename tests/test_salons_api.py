from bson import ObjectId

from db.database import SALONS


async def test_lists_only_approved_salons_without_secrets(api, salon, db):
    await db[SALONS].insert_one({"name": "Pending Place", "approvalStatus": "pending"})

    r = await api.get("/api/salons")

    body = r.json()
    assert [s["name"] for s in body] == ["Studio Nine"]
    assert "password" not in body[0]


async def test_salon_detail(api, salon, db):
    r = await api.get(f"/api/salons/{salon['_id']}")
    assert r.json()["_id"] == str(salon["_id"])

    pending = await db[SALONS].insert_one({"name": "Pending Place", "approvalStatus": "pending"})
    assert (await api.get(f"/api/salons/{pending.inserted_id}")).status_code == 404
    assert (await api.get("/api/salons/not-an-id")).status_code == 404


async def test_professionals_by_salon(api, salon, professional, second_professional):
    r = await api.get(f"/api/professionals/salon/{salon['_id']}")
    assert [p["name"] for p in r.json()] == ["Alex", "Sam"]
    assert (await api.get("/api/professionals/salon/bad")).json() == []


async def test_professional_lookup_never_falls_back_to_salon(api, salon, professional):
    r = await api.get(f"/api/professionals/{professional['_id']}")
    assert r.json()["name"] == "Alex"

    assert (await api.get(f"/api/professionals/{salon['_id']}")).status_code == 404
    assert (await api.get(f"/api/professionals/{ObjectId()}")).status_code == 404


async def test_health(api):
    r = await api.get("/")
    assert r.json()["status"] == "ok"
