import os

INTERNAL_KEY = os.getenv("INTERNAL_ADMIN_KEY", "test-internal")


async def test_signup_login_me_logout(client):
    r = await client.post(
        "/v1/auth/signup",
        json={"name": "Nora", "email": "Nora@OpsHub.io", "password": "long-enough-pw"},
    )
    assert r.status_code == 201, r.text
    profile = r.json()
    assert profile["role"] == "pending_approval"
    assert profile["email"] == "nora@opshub.io"
    assert profile["team_id"] is None

    r = await client.post("/v1/auth/login", json={"email": "nora@opshub.io", "password": "long-enough-pw"})
    assert r.status_code == 200, r.text
    session = r.json()
    assert session["token_type"] == "bearer"
    assert session["access_token"].startswith("st_")
    headers = {"Authorization": f"Bearer {session['access_token']}"}

    r = await client.get("/v1/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["role"] == "pending_approval"

    r = await client.post("/v1/auth/logout", headers=headers)
    assert r.status_code == 200

    r = await client.get("/v1/me", headers=headers)
    assert r.status_code == 401


async def test_signup_rejects_duplicates_and_short_passwords(client, world):
    r = await client.post("/v1/auth/signup", json={"name": "M1 again", "email": world.m1.email, "password": "long-enough-pw"})
    assert r.status_code == 409

    r = await client.post("/v1/auth/signup", json={"name": "Shorty", "email": "shorty@opshub.io", "password": "short"})
    assert r.status_code == 422


async def test_login_with_wrong_password(client, world):
    r = await client.post("/v1/auth/login", json={"email": world.m1.email, "password": "wrong-password"})
    assert r.status_code == 401

    r = await client.post("/v1/auth/login", json={"email": world.m1.email, "password": "correct-horse"})
    assert r.status_code == 200
    assert r.json()["role"] == "mailer"


async def test_bootstrap_admin_requires_internal_key(client):
    body = {"name": "Root", "email": "root@opshub.io", "password": "long-enough-pw"}

    r = await client.post("/v1/internal/bootstrap-admin", json=body)
    assert r.status_code == 403
    r = await client.post("/v1/internal/bootstrap-admin", json=body, headers={"X-Internal-Admin-Key": "guess"})
    assert r.status_code == 403

    r = await client.post("/v1/internal/bootstrap-admin", json=body, headers={"X-Internal-Admin-Key": INTERNAL_KEY})
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "admin"


async def test_admin_approves_pending_user(client, world):
    r = await client.get("/v1/admin/users/pending", headers=world.admin.headers)
    assert [u["id"] for u in r.json()] == [world.pending.id]

    r = await client.post(
        f"/v1/admin/users/{world.pending.id}/approve",
        headers=world.admin.headers,
        json={"role": "mailer", "team_id": world.t1},
    )
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "mailer"
    assert r.json()["team_id"] == world.t1

    # the existing session picks up the new role immediately
    r = await client.get("/v1/resources/server", headers=world.pending.headers)
    assert r.status_code == 200

    r = await client.post(
        f"/v1/admin/users/{world.pending.id}/approve",
        headers=world.admin.headers,
        json={"role": "mailer", "team_id": world.t1},
    )
    assert r.status_code == 409


async def test_approval_errors(client, world):
    r = await client.post(
        f"/v1/admin/users/{world.pending.id}/approve",
        headers=world.admin.headers,
        json={"role": "mailer", "team_id": "team_missing"},
    )
    assert r.status_code == 404

    r = await client.post(
        f"/v1/admin/users/{world.pending.id}/approve",
        headers=world.admin.headers,
        json={"role": "admin", "team_id": world.t1},
    )
    assert r.status_code == 422

    r = await client.post(
        "/v1/admin/users/usr_missing/approve",
        headers=world.admin.headers,
        json={"role": "mailer", "team_id": world.t1},
    )
    assert r.status_code == 404

    r = await client.get("/v1/admin/users/pending", headers=world.l1.headers)
    assert r.status_code == 403


async def test_deny_removes_pending_user(client, world):
    r = await client.delete(f"/v1/admin/users/{world.pending.id}", headers=world.admin.headers)
    assert r.status_code == 200

    r = await client.get("/v1/me", headers=world.pending.headers)
    assert r.status_code == 401

    r = await client.delete(f"/v1/admin/users/{world.m1.id}", headers=world.admin.headers)
    assert r.status_code == 409


async def test_team_management(client, world):
    r = await client.post("/v1/admin/teams", headers=world.admin.headers, json={"name": "Team Three"})
    assert r.status_code == 201
    t3 = r.json()["id"]

    r = await client.post("/v1/admin/teams", headers=world.admin.headers, json={"name": "Team Three"})
    assert r.status_code == 409

    r = await client.patch(f"/v1/admin/teams/{t3}", headers=world.admin.headers, json={"name": "Team Trois"})
    assert r.json()["name"] == "Team Trois"

    r = await client.get("/v1/admin/teams", headers=world.admin.headers)
    assert {t["name"] for t in r.json()} == {"Team One", "Team Two", "Team Trois"}

    r = await client.delete(f"/v1/admin/teams/{world.t1}", headers=world.admin.headers)
    assert r.status_code == 409

    r = await client.delete(f"/v1/admin/teams/{t3}", headers=world.admin.headers)
    assert r.status_code == 200

    r = await client.get(f"/v1/admin/teams/{world.t1}/members", headers=world.admin.headers)
    assert {m["id"] for m in r.json()} == {world.l1.id, world.m1.id, world.m1b.id}


async def test_team_leader_lists_own_mailers(client, world):
    r = await client.get("/v1/team/mailers", headers=world.l1.headers)
    assert r.status_code == 200
    assert {m["id"] for m in r.json()} == {world.m1.id, world.m1b.id}

    r = await client.get("/v1/team/mailers", headers=world.m1.headers)
    assert r.status_code == 403


async def test_team_leader_creates_approved_mailer(client, world):
    body = {"name": "Fresh Mailer", "email": "fresh@opshub.io", "password": "long-enough-pw"}

    r = await client.post("/v1/team/mailers", headers=world.l1.headers, json=body)
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["role"] == "mailer"
    assert created["team_id"] == world.t1

    r = await client.post("/v1/auth/login", json={"email": "fresh@opshub.io", "password": "long-enough-pw"})
    assert r.status_code == 200
    assert r.json()["role"] == "mailer"

    r = await client.get("/v1/team/mailers", headers=world.l1.headers)
    assert created["id"] in {m["id"] for m in r.json()}

    r = await client.post("/v1/team/mailers", headers=world.l1.headers, json=body)
    assert r.status_code == 409

    r = await client.post(
        "/v1/team/mailers",
        headers=world.m1.headers,
        json={"name": "Nope", "email": "nope@opshub.io", "password": "long-enough-pw"},
    )
    assert r.status_code == 403


async def test_admin_creates_team_leader(client, world):
    body = {"name": "Lead Three", "email": "lead3@opshub.io", "password": "long-enough-pw"}

    r = await client.post(f"/v1/admin/teams/{world.t2}/leaders", headers=world.admin.headers, json=body)
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "team-leader"
    assert r.json()["team_id"] == world.t2

    r = await client.get(f"/v1/admin/teams/{world.t2}/members", headers=world.admin.headers)
    assert "lead3@opshub.io" in {m["email"] for m in r.json()}

    other = {"name": "Lead Four", "email": "lead4@opshub.io", "password": "long-enough-pw"}
    r = await client.post("/v1/admin/teams/team_missing/leaders", headers=world.admin.headers, json=other)
    assert r.status_code == 404

    r = await client.post(f"/v1/admin/teams/{world.t1}/leaders", headers=world.l1.headers, json=other)
    assert r.status_code == 403


async def test_empty_allow_list_lets_everyone_in(client, world):
    r = await client.get("/v1/auth/ip-check", headers={"X-Forwarded-For": "203.0.113.9"})
    assert r.json() == {"ip": "203.0.113.9", "allowed": True}

    r = await client.post(
        "/v1/auth/login",
        headers={"X-Forwarded-For": "203.0.113.9"},
        json={"email": world.m1.email, "password": "correct-horse"},
    )
    assert r.status_code == 200


async def test_allow_list_blocks_unlisted_addresses(client, world):
    r = await client.post(
        "/v1/admin/allowed-ips",
        headers=world.admin.headers,
        json={"ip_address": "198.51.100.7", "description": "office"},
    )
    assert r.status_code == 201, r.text
    entry = r.json()
    assert entry["added_by_admin_id"] == world.admin.id

    outside = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
    office = {"X-Forwarded-For": "198.51.100.7, 10.0.0.1"}
    login = {"email": world.m1.email, "password": "correct-horse"}
    signup = {"name": "Walk In", "email": "walkin@opshub.io", "password": "long-enough-pw"}

    r = await client.post("/v1/auth/login", headers=outside, json=login)
    assert r.status_code == 403
    r = await client.post("/v1/auth/signup", headers=outside, json=signup)
    assert r.status_code == 403
    r = await client.get("/v1/auth/ip-check", headers=outside)
    assert r.json()["allowed"] is False

    r = await client.post("/v1/auth/login", headers=office, json=login)
    assert r.status_code == 200
    r = await client.post("/v1/auth/signup", headers=office, json=signup)
    assert r.status_code == 201

    # existing sessions are not affected
    r = await client.get("/v1/me", headers={**world.m1.headers, **outside})
    assert r.status_code == 200

    r = await client.delete(f"/v1/admin/allowed-ips/{entry['id']}", headers=world.admin.headers)
    assert r.status_code == 200
    r = await client.post("/v1/auth/login", headers=outside, json=login)
    assert r.status_code == 200


async def test_allow_list_admin_errors(client, world):
    body = {"ip_address": "198.51.100.7"}
    r = await client.post("/v1/admin/allowed-ips", headers=world.admin.headers, json=body)
    assert r.status_code == 201

    r = await client.post("/v1/admin/allowed-ips", headers=world.admin.headers, json=body)
    assert r.status_code == 409

    r = await client.post("/v1/admin/allowed-ips", headers=world.admin.headers, json={"ip_address": "not-an-ip"})
    assert r.status_code == 422

    r = await client.get("/v1/admin/allowed-ips", headers=world.admin.headers)
    assert [e["ip_address"] for e in r.json()] == ["198.51.100.7"]

    r = await client.get("/v1/admin/allowed-ips", headers=world.l1.headers)
    assert r.status_code == 403

    r = await client.delete("/v1/admin/allowed-ips/aip_missing", headers=world.admin.headers)
    assert r.status_code == 404
