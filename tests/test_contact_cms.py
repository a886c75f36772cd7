# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contact form and CMS tests."""

import pytest
from httpx import AsyncClient

from leflow_server.config import settings
from leflow_server.services.cms import DEFAULT_CONTENT, seed_default_content

pytestmark = pytest.mark.anyio

ENQUIRY = {
    "name": "Marko",
    "email": "marko@example.com",
    "phone": "+381 60 1234567",
    "service": "Mix & Master",
    "preferredDate": "2025-07-01",
    "message": "Zdravo, treba mi <b>miks</b> za tri pesme.",
}


async def test_contact_submission_notifies_studio(client: AsyncClient, mailer):
    r = await client.post("/api/contact", json=ENQUIRY, headers={"X-Forwarded-For": "8.8.8.8"})
    assert r.status_code == 201, r.text
    assert r.json()["name"] == "Marko"
    assert len(mailer.sent) == 1
    notice = mailer.sent[0]
    assert notice["to"] == "business@studioleflow.com"
    assert "&lt;b&gt;miks&lt;/b&gt;" in notice["html"]
    assert "<b>miks</b>" not in notice["html"]


async def test_contact_mail_failure_still_stores(client: AsyncClient, mailer, make_user, login):
    mailer.fail = True
    r = await client.post("/api/contact", json=ENQUIRY, headers={"X-Forwarded-For": "8.8.8.8"})
    assert r.status_code == 201

    await make_user("root", admin=True)
    headers = await login("root")
    listed = (await client.get("/api/contact", headers=headers)).json()
    assert len(listed) == 1
    assert listed[0]["preferredDate"] == "2025-07-01"


async def test_contact_validation(client: AsyncClient):
    r = await client.post("/api/contact", json={**ENQUIRY, "message": "short"})
    assert r.status_code == 400
    r = await client.post("/api/contact", json={**ENQUIRY, "phone": "123"})
    assert r.status_code == 400


async def test_contact_rate_limit_per_address(client: AsyncClient):
    remote = {"X-Forwarded-For": "8.8.4.4"}
    for _ in range(3):
        assert (await client.post("/api/contact", json=ENQUIRY, headers=remote)).status_code == 201
    r = await client.post("/api/contact", json=ENQUIRY, headers=remote)
    assert r.status_code == 429
    assert "minuta" in r.json()["detail"]

    other = await client.post("/api/contact", json=ENQUIRY, headers={"X-Forwarded-For": "1.1.1.1"})
    assert other.status_code == 201


async def test_contact_forged_local_address_is_limited(client: AsyncClient):
    # The proxy appends the real address; a client-written 127.0.0.1 stays to its left
    forged = {"X-Forwarded-For": "127.0.0.1, 8.8.4.4"}
    for _ in range(3):
        assert (await client.post("/api/contact", json=ENQUIRY, headers=forged)).status_code == 201
    r = await client.post("/api/contact", json=ENQUIRY, headers=forged)
    assert r.status_code == 429


async def test_contact_local_socket_not_limited(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "trusted_proxy_hops", 0)
    for _ in range(4):
        local = await client.post("/api/contact", json=ENQUIRY, headers={"X-Forwarded-For": "8.8.4.4"})
        assert local.status_code == 201


async def test_cms_seed_is_idempotent(session_factory):
    async with session_factory() as db:
        assert await seed_default_content(db) == len(DEFAULT_CONTENT)
        await db.commit()
    async with session_factory() as db:
        assert await seed_default_content(db) == 0


async def test_cms_content_public_read_admin_write(client: AsyncClient, make_user, login):
    item = {"page": "home", "section": "hero", "contentKey": "title", "contentValue": "Studio LeFlow"}
    assert (await client.post("/api/cms/content", json=[item])).status_code == 401

    await make_user("root", admin=True)
    headers = await login("root")
    r = await client.post(
        "/api/cms/content",
        json=[item, {**item, "contentKey": "subtitle", "contentValue": "Produkcija"}],
        headers=headers,
    )
    assert r.status_code == 200
    assert len(r.json()) == 2

    r = await client.put("/api/cms/content/single", json={**item, "contentValue": "Novi naslov"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["contentValue"] == "Novi naslov"

    content = (await client.get("/api/cms/content", params={"page": "home"})).json()
    assert [c["contentKey"] for c in content] == ["subtitle", "title"]
    assert content[1]["contentValue"] == "Novi naslov"
    assert (await client.get("/api/cms/content", params={"page": "team"})).json() == []

    bad = await client.put("/api/cms/content/single", json={**item, "page": "blog"}, headers=headers)
    assert bad.status_code == 400


async def test_cms_delete_team_member_by_prefix(client: AsyncClient, make_user, login):
    await make_user("root", admin=True)
    headers = await login("root")
    entries = [
        {"page": "team", "section": "members", "contentKey": key, "contentValue": "x"}
        for key in ("member_1_name", "member_1_role", "member_10_name", "member_2_name")
    ]
    await client.post("/api/cms/content", json=entries, headers=headers)

    r = await client.delete("/api/cms/team-member/1", headers=headers)
    assert r.status_code == 200
    keys = [c["contentKey"] for c in (await client.get("/api/cms/content", params={"page": "team"})).json()]
    assert keys == ["member_10_name", "member_2_name"]


async def test_cms_media(client: AsyncClient, make_user, login):
    await make_user("root", admin=True)
    headers = await login("root")
    media = {"page": "home", "section": "hero", "assetKey": "background", "filePath": "attached_assets/cms/home/a.png"}
    first = await client.post("/api/cms/media", json=media, headers=headers)
    second = await client.post(
        "/api/cms/media", json={**media, "filePath": "attached_assets/cms/home/b.png"}, headers=headers
    )
    assert first.json()["id"] == second.json()["id"]

    listed = (await client.get("/api/cms/media", params={"page": "home"})).json()
    assert len(listed) == 1
    assert listed[0]["filePath"].endswith("b.png")

    media_id = listed[0]["id"]
    assert (await client.delete(f"/api/cms/media/{media_id}", headers=headers)).status_code == 200
    assert (await client.delete(f"/api/cms/media/{media_id}", headers=headers)).status_code == 404
    assert (await client.get("/api/cms/media")).json() == []
