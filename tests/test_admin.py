# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin API tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from leflow_server.api.schemas import ProjectCreate
from leflow_server.models import Comment, Project, User, Vote
from leflow_server.services import contest

pytestmark = pytest.mark.anyio


def _track(title: str) -> ProjectCreate:
    return ProjectCreate(title=title, genre="trap", mp3_url=f"https://files.example.com/{title}.mp3")


async def _approved_project(session_factory, owner: User, title: str) -> int:
    async with session_factory() as db:
        project = await contest.submit_project(db, owner, _track(title))
        await contest.approve_project(db, project["id"])
        await db.commit()
    return project["id"]


@pytest.fixture
async def admin_headers(anyio_backend, make_user, login):
    await make_user("root", admin=True)
    return await login("root")


async def test_admin_routes_require_admin(client: AsyncClient, make_user, login):
    assert (await client.get("/api/admin/stats")).status_code == 401
    await make_user("bob")
    headers = await login("bob")
    for path in ("/api/admin/stats", "/api/admin/users", "/api/admin/comments", "/api/contact"):
        assert (await client.get(path, headers=headers)).status_code == 403


async def test_stats_and_user_list(client: AsyncClient, make_user, admin_headers, session_factory):
    bob = await make_user("bob")
    pid = await _approved_project(session_factory, bob, "One")
    async with session_factory() as db:
        await contest.add_comment(db, bob, pid, "hi")
        await db.commit()

    stats = (await client.get("/api/admin/stats", headers=admin_headers)).json()
    assert stats == {"totalUsers": 2, "totalProjects": 1, "totalVotes": 0, "totalComments": 1}
    users = (await client.get("/api/admin/users", headers=admin_headers)).json()
    assert {u["username"] for u in users} == {"root", "bob"}


async def test_ban_unban(client: AsyncClient, make_user, admin_headers, login):
    bob = await make_user("bob")
    r = await client.post(f"/api/admin/users/{bob.id}/ban", headers=admin_headers)
    assert r.status_code == 200
    r = await client.post("/api/login", json={"username": "bob", "password": "password123"})
    assert r.status_code == 403
    r = await client.post(f"/api/admin/users/{bob.id}/unban", headers=admin_headers)
    assert r.status_code == 200
    await login("bob")
    assert (await client.post("/api/admin/users/999/ban", headers=admin_headers)).status_code == 404


async def test_admin_cannot_demote_or_delete_self(client: AsyncClient, make_user, login):
    root = await make_user("root", admin=True)
    headers = await login("root")
    r = await client.post(f"/api/admin/users/{root.id}/toggle-admin", headers=headers)
    assert r.status_code == 400
    r = await client.delete(f"/api/admin/users/{root.id}", headers=headers)
    assert r.status_code == 400
    me = (await client.get("/api/user", headers=headers)).json()
    assert me["role"] == "admin"


async def test_toggle_admin_both_ways(client: AsyncClient, make_user, admin_headers):
    bob = await make_user("bob")
    r = await client.post(f"/api/admin/users/{bob.id}/toggle-admin", headers=admin_headers)
    assert r.json()["role"] == "admin"
    r = await client.post(f"/api/admin/users/{bob.id}/toggle-admin", headers=admin_headers)
    assert r.json()["role"] == "user"
    r = await client.post("/api/admin/users/999/toggle-admin", headers=admin_headers)
    assert r.status_code == 404


async def test_delete_user_keeps_vote_counts_consistent(
    client: AsyncClient, make_user, admin_headers, session_factory
):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    alice_project = await _approved_project(session_factory, alice, "Alice")
    bob_project = await _approved_project(session_factory, bob, "Bob")

    async with session_factory() as db:
        await contest.toggle_vote(db, bob, alice_project, "10.0.0.2")
        await contest.toggle_vote(db, carol, alice_project, "10.0.0.3")
        await contest.toggle_vote(db, carol, bob_project, "10.0.0.3")
        await contest.add_comment(db, bob, alice_project, "from bob")
        await contest.add_comment(db, carol, bob_project, "on bob's track")
        await db.commit()

    r = await client.delete(f"/api/admin/users/{bob.id}", headers=admin_headers)
    assert r.status_code == 200

    async with session_factory() as db:
        assert await db.scalar(select(User).where(User.id == bob.id)) is None
        assert await db.scalar(select(Project).where(Project.id == bob_project)) is None
        assert await db.scalar(select(func.count()).select_from(Vote).where(Vote.project_id == bob_project)) == 0
        assert await db.scalar(select(func.count()).select_from(Comment)) == 0
        remaining = await db.scalar(select(Project).where(Project.id == alice_project))
        rows = await db.scalar(
            select(func.count()).select_from(Vote).where(Vote.project_id == alice_project)
        )
        assert remaining.votes_count == rows == 1

    assert (await client.delete("/api/admin/users/999", headers=admin_headers)).status_code == 404


async def test_project_moderation(client: AsyncClient, make_user, admin_headers, session_factory):
    alice = await make_user("alice")
    bob = await make_user("bob")
    async with session_factory() as db:
        pending = await contest.submit_project(db, alice, _track("Pending"))
        await db.commit()
    approved = await _approved_project(session_factory, bob, "Approved")
    async with session_factory() as db:
        await contest.toggle_vote(db, alice, approved, "10.0.0.9")
        await db.commit()

    all_projects = (await client.get("/api/admin/all-projects", headers=admin_headers)).json()
    assert {p["id"] for p in all_projects} == {pending["id"], approved}

    r = await client.delete(f"/api/admin/projects/{approved}", headers=admin_headers)
    assert r.status_code == 200
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(Vote)) == 0
    assert (await client.delete(f"/api/admin/projects/{approved}", headers=admin_headers)).status_code == 404
    assert (await client.post("/api/admin/projects/999/approve", headers=admin_headers)).status_code == 404


async def test_comment_moderation(client: AsyncClient, make_user, admin_headers, session_factory):
    bob = await make_user("bob")
    pid = await _approved_project(session_factory, bob, "Track")
    async with session_factory() as db:
        comment = await contest.add_comment(db, bob, pid, "spam")
        await db.commit()

    listed = (await client.get("/api/admin/comments", headers=admin_headers)).json()
    assert listed[0]["projectTitle"] == "Track"
    assert listed[0]["username"] == "bob"

    r = await client.delete(f"/api/admin/comments/{comment['id']}", headers=admin_headers)
    assert r.status_code == 200
    r = await client.delete(f"/api/admin/comments/{comment['id']}", headers=admin_headers)
    assert r.status_code == 404
