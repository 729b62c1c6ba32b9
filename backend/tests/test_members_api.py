"""API tests for /groups/{id}/members."""

import pytest

from app.db.models import AccessLevel, GroupMember
from conftest import auth


@pytest.fixture
def crew(make_user, make_group, manager):
    """group_with_members holds one user per level; group_no_members only its owner."""
    owner = make_user()
    people = {
        "owner": owner,
        "reporter": make_user(),
        "developer": make_user(),
        "master": make_user(),
        "guest": make_user(),
    }
    with_members = make_group(owner=owner)
    no_members = make_group(owner=owner)
    for key in ("reporter", "developer", "master", "guest"):
        manager.add_members(with_members, [people[key].id], AccessLevel[key.upper()])
    return people, with_members, no_members


def count(db_session, grp):
    return db_session.query(GroupMember).filter(GroupMember.group_id == grp.id).count()


class TestListMembers:
    def test_every_member_sees_all(self, client, crew):
        people, grp, _ = crew
        for user in people.values():
            res = client.get(f"/groups/{grp.id}/members", headers=auth(user))
            assert res.status_code == 200
            body = res.json()
            assert len(body) == 5
            levels = {m["id"]: m["access_level"] for m in body}
            for key, person in people.items():
                assert levels[person.id] == AccessLevel[key.upper()]

    def test_ordered_by_level(self, client, crew):
        people, grp, _ = crew
        body = client.get(f"/groups/{grp.id}/members", headers=auth(people["guest"])).json()
        assert [m["access_level"] for m in body] == [50, 40, 30, 20, 10]

    def test_outsider_is_forbidden(self, client, crew, make_user):
        _, grp, _ = crew
        res = client.get(f"/groups/{grp.id}/members", headers=auth(make_user()))
        assert res.status_code == 403

    def test_pagination_headers(self, client, crew):
        people, grp, _ = crew
        res = client.get(
            f"/groups/{grp.id}/members",
            params={"page": 2, "per_page": 2},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 200
        assert len(res.json()) == 2
        assert res.headers["X-Total"] == "5"
        assert res.headers["X-Page"] == "2"
        assert res.headers["X-Per-Page"] == "2"

    def test_default_page_size(self, client, crew):
        people, grp, _ = crew
        res = client.get(f"/groups/{grp.id}/members", headers=auth(people["owner"]))
        assert res.headers["X-Page"] == "1"
        assert res.headers["X-Per-Page"] == "50"

    def test_huge_page_is_empty(self, client, crew):
        people, grp, _ = crew
        res = client.get(
            f"/groups/{grp.id}/members",
            params={"page": 10**18},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 200
        assert res.json() == []
        assert res.headers["X-Total"] == "5"

    def test_search_percent_is_literal(self, client, crew):
        people, grp, _ = crew
        res = client.get(
            f"/groups/{grp.id}/members",
            params={"search": "%"},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 200
        assert res.json() == []

    def test_search(self, client, crew, make_user, manager):
        people, grp, _ = crew
        zed = make_user(username="zed", name="Zed Shaw")
        manager.add_member(grp, zed.id, AccessLevel.GUEST)
        res = client.get(
            f"/groups/{grp.id}/members",
            params={"search": "SHAW"},
            headers=auth(people["owner"]),
        )
        assert [m["username"] for m in res.json()] == ["zed"]


class TestAddMember:
    def test_outsider_cannot_add(self, client, crew):
        people, _, no_members = crew
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"user_id": people["guest"].id, "access_level": AccessLevel.MASTER},
            headers=auth(people["reporter"]),
        )
        assert res.status_code == 403

    def test_owner_adds(self, client, crew, make_user, db_session):
        people, _, no_members = crew
        before = count(db_session, no_members)
        new_user = make_user()
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"user_id": new_user.id, "access_level": AccessLevel.MASTER},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 201
        assert res.json()["name"] == new_user.name
        assert res.json()["access_level"] == AccessLevel.MASTER
        assert count(db_session, no_members) == before + 1

    def test_existing_member_conflicts(self, client, crew):
        people, grp, _ = crew
        res = client.post(
            f"/groups/{grp.id}/members",
            json={"user_id": people["master"].id, "access_level": AccessLevel.MASTER},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 409

    def test_missing_user_id(self, client, crew):
        people, _, no_members = crew
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"access_level": AccessLevel.MASTER},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 400

    def test_missing_access_level(self, client, crew):
        people, _, no_members = crew
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"user_id": people["master"].id},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 400

    def test_unknown_access_level(self, client, crew):
        people, _, no_members = crew
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"user_id": people["master"].id, "access_level": 1234},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 422

    def test_unknown_user(self, client, crew):
        people, _, no_members = crew
        res = client.post(
            f"/groups/{no_members.id}/members",
            json={"user_id": 98765, "access_level": AccessLevel.GUEST},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 404

    def test_bulk_add(self, client, crew, make_user, db_session):
        people, grp, _ = crew
        a, b = make_user(), make_user()
        res = client.post(
            f"/groups/{grp.id}/members/bulk",
            json={
                "user_ids": f"{a.id},{b.id},{people['guest'].id}",
                "access_level": AccessLevel.REPORTER,
            },
            headers=auth(people["master"]),
        )
        assert res.status_code == 201
        assert res.json() == {"added": 2}
        assert count(db_session, grp) == 7


class TestUpdateMember:
    def test_owner_promotes(self, client, crew):
        people, grp, _ = crew
        res = client.put(
            f"/groups/{grp.id}/members/{people['guest'].id}",
            json={"access_level": AccessLevel.DEVELOPER},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 200
        assert res.json()["access_level"] == AccessLevel.DEVELOPER

    def test_demoting_last_owner(self, client, crew):
        people, grp, _ = crew
        res = client.put(
            f"/groups/{grp.id}/members/{people['owner'].id}",
            json={"access_level": AccessLevel.GUEST},
            headers=auth(people["owner"]),
        )
        assert res.status_code == 409

    def test_developer_cannot_update(self, client, crew):
        people, grp, _ = crew
        res = client.put(
            f"/groups/{grp.id}/members/{people['guest'].id}",
            json={"access_level": AccessLevel.REPORTER},
            headers=auth(people["developer"]),
        )
        assert res.status_code == 403


class TestRemoveMember:
    def test_outsider_cannot_remove(self, client, crew, make_user):
        people, grp, _ = crew
        res = client.delete(
            f"/groups/{grp.id}/members/{people['owner'].id}", headers=auth(make_user())
        )
        assert res.status_code == 403

    def test_owner_removes_guest(self, client, crew, db_session):
        people, grp, _ = crew
        before = count(db_session, grp)
        res = client.delete(
            f"/groups/{grp.id}/members/{people['guest'].id}", headers=auth(people["owner"])
        )
        assert res.status_code == 200
        assert count(db_session, grp) == before - 1

    def test_unknown_member(self, client, crew):
        people, grp, _ = crew
        res = client.delete(f"/groups/{grp.id}/members/1328", headers=auth(people["owner"]))
        assert res.status_code == 404

    def test_last_owner_stays(self, client, crew, admin):
        people, grp, _ = crew
        res = client.delete(
            f"/groups/{grp.id}/members/{people['owner'].id}", headers=auth(admin)
        )
        assert res.status_code == 409

    def test_reporter_cannot_remove_master(self, client, crew):
        people, grp, _ = crew
        res = client.delete(
            f"/groups/{grp.id}/members/{people['master'].id}", headers=auth(people["reporter"])
        )
        assert res.status_code == 403

    def test_leave(self, client, crew):
        people, grp, _ = crew
        res = client.post(f"/groups/{grp.id}/leave", headers=auth(people["developer"]))
        assert res.status_code == 200
        again = client.post(f"/groups/{grp.id}/leave", headers=auth(people["developer"]))
        assert again.status_code == 404

    def test_sole_owner_cannot_leave(self, client, crew):
        people, grp, _ = crew
        res = client.post(f"/groups/{grp.id}/leave", headers=auth(people["owner"]))
        assert res.status_code == 409
