from sqlalchemy import func, select

from opshub.models.seed_email import SeedEmail
from opshub.services.bulk_import import bulk_import
from opshub.services.resource_kinds import get_kind


async def test_bulk_servers_report_per_row(client, world):
    await client.post(
        "/v1/resources/server",
        headers=world.m1.headers,
        json={"provider": "Hetzner", "ip_address": "10.0.0.1"},
    )

    rows = [
        {"provider": "Hetzner", "ip_address": "10.0.0.1"},   # already in the team
        {"provider": "OVH", "ip_address": "10.0.0.2"},
        {"provider": "OVH", "ip_address": "not-an-ip"},
        {"provider": "OVH", "ip_address": "10.0.0.2"},       # repeats row 2
        {"provider": "Contabo", "ip_address": "10.0.0.3"},
    ]
    r = await client.post("/v1/resources/server/bulk", headers=world.m1.headers, json={"rows": rows})
    assert r.status_code == 200, r.text
    report = r.json()

    assert [row["ip_address"] for row in report["created"]] == ["10.0.0.2", "10.0.0.3"]
    assert [(s["row"], s["reason"]) for s in report["skipped"]] == [
        (1, "Already exists in database for this team."),
        (4, "Duplicate of row 2 in this batch."),
    ]
    assert [e["row"] for e in report["errors"]] == [3]
    assert "ip_address" in report["errors"][0]["message"]
    assert report["message"] == "Imported 2 server rows; 2 skipped, 1 failed."


async def test_same_ip_in_another_team_is_not_a_duplicate(client, world):
    body = {"rows": [{"provider": "Hetzner", "ip_address": "10.0.0.1"}]}
    r = await client.post("/v1/resources/server/bulk", headers=world.m1.headers, json=body)
    assert len(r.json()["created"]) == 1

    r = await client.post("/v1/resources/server/bulk", headers=world.m2.headers, json=body)
    assert len(r.json()["created"]) == 1


async def test_seed_emails_dedupe_case_insensitively_and_report_group(db_session, world):
    kind_spec = get_kind("seed_email")

    first = await bulk_import(
        db_session,
        actor=world.m1.actor,
        kind_spec=kind_spec,
        rows=[{"email_address": "alpha@gmail.com", "password_alias": "vault/a"}],
        group_name="warmup-batch-1",
    )
    await db_session.commit()
    assert first.created[0]["group_name"] == "warmup-batch-1"
    assert first.created[0]["isp"] == "Gmail"

    second = await bulk_import(
        db_session,
        actor=world.m1.actor,
        kind_spec=kind_spec,
        rows=[
            {"email_address": "ALPHA@gmail.com", "password_alias": "vault/a"},
            {"email_address": "beta@outlook.com", "password_alias": "vault/b", "group_name": "own-group"},
        ],
        group_name="warmup-batch-2",
    )
    await db_session.commit()

    assert len(second.skipped) == 1
    assert second.skipped[0].key == "alpha@gmail.com"
    assert second.skipped[0].existing_group_name == "warmup-batch-1"
    assert second.created[0]["group_name"] == "own-group"

    count = (await db_session.execute(select(func.count()).select_from(SeedEmail))).scalar_one()
    assert count == 2


async def test_all_duplicates_adds_nothing(client, world):
    body = {"rows": [{"proxy_string": "1.1.1.1:80"}]}
    await client.post("/v1/resources/proxy/bulk", headers=world.m1.headers, json=body)

    r = await client.post("/v1/resources/proxy/bulk", headers=world.m1.headers, json=body)

    report = r.json()
    assert report["created"] == []
    assert report["message"] == "All 1 provided rows already exist. Nothing added."


async def test_all_invalid(client, world):
    r = await client.post(
        "/v1/resources/rdp/bulk",
        headers=world.m1.headers,
        json={"rows": [{"ip_address": "10.0.0.1"}, {"ip_address": "10.0.0.2", "username": "admin", "password_alias": "v", "status": "returned"}]},
    )
    report = r.json()
    assert report["created"] == []
    assert [e["row"] for e in report["errors"]] == [1, 2]
    assert report["message"] == "All rdp entries were invalid or failed to import."


async def test_empty_batch_is_rejected(client, world):
    r = await client.post("/v1/resources/server/bulk", headers=world.m1.headers, json={"rows": []})
    assert r.status_code == 422
