import pytest

from opshub.models.server import Server


async def test_return_flow_over_http(client, world, make_server, fetch_status):
    sid = await make_server(world.m1)

    r = await client.post(f"/v1/resources/server/{sid}/return", headers=world.m1.headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["code"] == "ok"
    assert body["data"]["status"] == "pending_return_approval"

    r = await client.post(f"/v1/returns/server/{sid}/approve", headers=world.l1.headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "returned"

    r = await client.post(f"/v1/returns/server/{sid}/approve", headers=world.l1.headers)
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_state"

    assert await fetch_status(Server, sid) == "returned"


async def test_missing_token_is_reported_in_body(client, world, make_server):
    sid = await make_server(world.m1)

    r = await client.post(f"/v1/resources/server/{sid}/return")

    assert r.status_code == 401
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "unauthenticated"
    assert body["data"] is None
    assert body["revalidate"] == []


async def test_bad_token_is_unauthenticated(client, world, make_server):
    sid = await make_server(world.m1)
    r = await client.post(
        f"/v1/returns/server/{sid}/approve",
        headers={"Authorization": "Bearer st_nope_nope"},
    )
    assert r.status_code == 401
    assert r.json()["code"] == "unauthenticated"


@pytest.mark.parametrize(
    "path,who,expected",
    [
        ("/v1/returns/server/{sid}/approve", "l2", 403),
        ("/v1/returns/server/{sid}/reject", "m1", 403),
        ("/v1/returns/server/srv_missing/approve", "l1", 404),
    ],
)
async def test_decision_errors_map_to_http_status(client, world, make_server, fetch_status, path, who, expected):
    sid = await make_server(world.m1, status="pending_return_approval")

    r = await client.post(path.format(sid=sid), headers=getattr(world, who).headers)

    assert r.status_code == expected
    assert r.json()["success"] is False
    assert await fetch_status(Server, sid) == "pending_return_approval"


async def test_reject_over_http(client, world, make_server, fetch_status):
    sid = await make_server(world.m1, status="pending_return_approval")

    r = await client.post(f"/v1/returns/server/{sid}/reject", headers=world.l1.headers)

    assert r.status_code == 200
    assert r.json()["message"] == "Server return rejected successfully."
    assert await fetch_status(Server, sid) == "active"


async def test_unknown_kind_is_rejected(client, world):
    r = await client.post("/v1/returns/laptop/x/approve", headers=world.l1.headers)
    assert r.status_code == 422


async def test_pending_queue_is_scoped(client, world, make_server):
    mine = await make_server(world.m1, status="pending_return_approval", ip_address="10.0.0.1")
    theirs = await make_server(world.m2, status="pending_return_approval", ip_address="10.0.0.2")
    await make_server(world.m1, status="active", ip_address="10.0.0.3")

    r = await client.get("/v1/returns/pending", headers=world.l1.headers)
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == [mine]

    r = await client.get("/v1/returns/pending", headers=world.admin.headers)
    assert r.status_code == 200
    assert {row["id"] for row in r.json()} == {mine, theirs}

    r = await client.get("/v1/returns/pending", headers=world.m1.headers)
    assert r.status_code == 403
