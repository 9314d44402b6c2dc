from decimal import Decimal


async def _log(client, who, date="2026-10-01", amount="125.50"):
    return await client.put("/v1/revenue", headers=who.headers, json={"date": date, "amount": amount})


async def test_mailer_logs_and_overwrites_a_day(client, world):
    r = await _log(client, world.m1)
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["mailer_id"] == world.m1.id
    assert first["team_id"] == world.t1
    assert Decimal(first["amount"]) == Decimal("125.50")

    r = await _log(client, world.m1, amount="200")
    assert r.status_code == 200
    assert r.json()["id"] == first["id"]
    assert Decimal(r.json()["amount"]) == Decimal("200")


async def test_only_mailers_log(client, world):
    r = await _log(client, world.l1)
    assert r.status_code == 403


async def test_amount_and_date_are_validated(client, world):
    r = await _log(client, world.m1, amount="-1")
    assert r.status_code == 422
    r = await _log(client, world.m1, date="yesterday")
    assert r.status_code == 422


async def test_listing_is_scoped(client, world):
    await _log(client, world.m1, date="2026-10-01")
    await _log(client, world.m1b, date="2026-10-01")
    await _log(client, world.m2, date="2026-10-01")

    r = await client.get("/v1/revenue", headers=world.m1.headers)
    assert {row["mailer_id"] for row in r.json()} == {world.m1.id}

    r = await client.get("/v1/revenue", headers=world.l1.headers)
    assert {row["mailer_id"] for row in r.json()} == {world.m1.id, world.m1b.id}

    r = await client.get(f"/v1/revenue?team_id={world.t2}", headers=world.admin.headers)
    assert {row["mailer_id"] for row in r.json()} == {world.m2.id}


async def test_date_range_filter(client, world):
    for day in ("2026-09-30", "2026-10-01", "2026-10-02"):
        await _log(client, world.m1, date=day)

    r = await client.get("/v1/revenue?date_from=2026-10-01&date_to=2026-10-01", headers=world.m1.headers)
    assert [row["date"] for row in r.json()] == ["2026-10-01"]


async def test_update_and_delete_scope(client, world):
    rev_id = (await _log(client, world.m1)).json()["id"]

    r = await client.patch(f"/v1/revenue/{rev_id}", headers=world.m1b.headers, json={"amount": "1"})
    assert r.status_code == 403
    r = await client.patch(f"/v1/revenue/{rev_id}", headers=world.l2.headers, json={"amount": "1"})
    assert r.status_code == 403

    r = await client.patch(f"/v1/revenue/{rev_id}", headers=world.l1.headers, json={"amount": "99.99"})
    assert r.status_code == 200
    assert Decimal(r.json()["amount"]) == Decimal("99.99")

    r = await client.delete(f"/v1/revenue/{rev_id}", headers=world.m1.headers)
    assert r.status_code == 200
    r = await client.delete(f"/v1/revenue/{rev_id}", headers=world.m1.headers)
    assert r.status_code == 404


async def test_moving_an_entry_onto_a_taken_date_conflicts(client, world):
    await _log(client, world.m1, date="2026-10-01")
    second = (await _log(client, world.m1, date="2026-10-02")).json()["id"]

    r = await client.patch(f"/v1/revenue/{second}", headers=world.m1.headers, json={"date": "2026-10-01"})

    assert r.status_code == 409
