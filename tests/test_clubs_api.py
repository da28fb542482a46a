import datetime

import clubhub.storage as storage
from clubhub.models import Announcement, Event, utcnow
from conftest import make_club, signup


def test_create_club_enrols_owner_as_admin(client, owner):
    data = make_club(client, owner[1], "Shutter Club", tags=["photo", "editing"], maxMembers=20)
    assert data["name"] == "Shutter Club"
    assert data["ownerId"] == owner[0]
    assert data["tags"] == ["photo", "editing"]
    assert data["maxMembers"] == 20
    assert data["counts"]["members"] == 1
    assert storage.get_club_member(data["id"], owner[0]).role == "admin"


def test_create_club_validation(client, owner):
    url = "/clubs"
    assert client.post(url, json={"name": "X", "description": "d", "category": "c"}).status_code == 401
    resp = client.post(url, json={"name": "Shutter Club", "category": "Arts"}, headers=owner[1])
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Name, description, and category are required"

    make_club(client, owner[1], "Shutter Club")
    dup = client.post(
        url, json={"name": "Shutter Club", "description": "again", "category": "Arts"}, headers=owner[1]
    )
    assert dup.status_code == 409
    assert len(storage.list_clubs()) == 1


def test_list_filters(client, owner):
    make_club(client, owner[1], "Shutter Club", category="Arts")
    make_club(client, owner[1], "Chess Club", description="strategy games", category="Games")

    names = [c["name"] for c in client.get("/clubs").json()]
    assert names == ["Chess Club", "Shutter Club"]
    assert [c["name"] for c in client.get("/clubs", params={"category": "Arts"}).json()] == ["Shutter Club"]
    assert len(client.get("/clubs", params={"category": "all"}).json()) == 2
    assert [c["name"] for c in client.get("/clubs", params={"search": "STRATEGY"}).json()] == ["Chess Club"]
    listed = client.get("/clubs").json()[0]
    assert listed["owner"]["name"] == "Owner"
    assert listed["counts"]["members"] == 1
    assert listed["upcomingEvents"] == []


def test_club_detail(client, owner, student, club):
    assert client.get(f"/clubs/{club['id']}").status_code == 401
    assert client.get("/clubs/missing", headers=owner[1]).status_code == 404

    client.post(f"/clubs/{club['id']}/add-member", json={"userEmail": "student@example.com"}, headers=owner[1])
    now = utcnow()
    for days in (3, 1, 2, -1):
        storage.create_event(
            Event(
                event_id=f"e{days}",
                club_id=club["id"],
                title=f"Event {days}",
                date=now + datetime.timedelta(days=days),
                venue="Hall",
            )
        )
    storage.set_event_active("e3", False)
    for i in range(7):
        storage.create_announcement(
            Announcement(
                announcement_id=f"a{i}",
                club_id=club["id"],
                author_id=owner[0],
                title=f"News {i}",
                content="...",
                created_at=now + datetime.timedelta(minutes=i),
            )
        )

    data = client.get(f"/clubs/{club['id']}", headers=student[1]).json()
    assert data["owner"]["email"] == "owner@example.com"
    assert [m["userId"] for m in data["members"]] == [owner[0], student[0]]
    assert data["members"][1]["user"]["name"] == "Student"
    assert [e["id"] for e in data["events"]] == ["e1", "e2"]
    assert [a["id"] for a in data["announcements"]] == ["a6", "a5", "a4", "a3", "a2"]
    assert data["announcements"][0]["author"]["name"] == "Owner"
    assert data["counts"] == {"members": 2, "events": 4, "announcements": 7}


def test_club_detail_caps_upcoming_events(client, owner, club):
    now = utcnow()
    for days in range(12, 0, -1):
        storage.create_event(
            Event(
                event_id=f"e{days:02d}",
                club_id=club["id"],
                title=f"Event {days}",
                date=now + datetime.timedelta(days=days),
                venue="Hall",
            )
        )

    data = client.get(f"/clubs/{club['id']}", headers=owner[1]).json()
    assert [e["id"] for e in data["events"]] == [f"e{days:02d}" for days in range(1, 11)]
    assert data["counts"]["events"] == 12


def test_inactive_club_detail_is_404(client, owner, club):
    stored = storage.get_club(club["id"])
    stored.is_active = False
    storage.save_club(stored)
    assert client.get(f"/clubs/{club['id']}", headers=owner[1]).status_code == 404


def test_update_club(client, owner, student, club):
    url = f"/clubs/{club['id']}"
    assert client.patch(url, json={"name": "Lens"}, headers=student[1]).status_code == 403
    assert client.patch(url, json={"name": "ab"}, headers=owner[1]).status_code == 400
    assert client.patch(url, json={"description": "too short"}, headers=owner[1]).status_code == 400

    resp = client.patch(
        url,
        json={"name": "  Lens Society ", "description": "All things photography", "tags": ["film"], "logo": None},
        headers=owner[1],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Lens Society"
    assert data["tags"] == ["film"]
    assert data["category"] == "Arts"
    stored = storage.get_club(club["id"])
    assert stored.description == "All things photography"
    assert stored.updated_at >= stored.created_at

    make_club(client, owner[1], "Chess Club", description="strategy games")
    assert client.patch(url, json={"name": "Chess Club"}, headers=owner[1]).status_code == 409


def test_delete_club_cascades(client, owner, student, club):
    client.post(f"/clubs/{club['id']}/requests", json={}, headers=student[1])
    storage.create_event(Event("e1", club["id"], "Meetup", utcnow(), "Hall"))

    assert client.delete(f"/clubs/{club['id']}", headers=student[1]).status_code == 403
    assert client.delete(f"/clubs/{club['id']}", headers=owner[1]).status_code == 200
    assert storage.get_club(club["id"]) is None
    assert storage.count_club_members(club["id"]) == 0
    assert storage.count_events(club["id"]) == 0
    assert storage.list_pending_requests(club["id"]) == []


def test_join_and_leave(client, owner, student, club):
    url = f"/clubs/{club['id']}/join"
    assert client.post(url, headers=owner[1]).status_code == 409

    resp = client.post(url, headers=student[1])
    assert resp.status_code == 403
    assert "membership request" in resp.json()["detail"]

    assert client.delete(url, headers=student[1]).status_code == 404
    assert client.delete(url, headers=owner[1]).status_code == 200
    assert storage.get_club_member(club["id"], owner[0]) is None

    assert client.post(url, headers=owner[1]).status_code == 200
    assert storage.get_club_member(club["id"], owner[0]).role == "admin"
    assert client.post("/clubs/missing/join", headers=owner[1]).status_code == 404


def test_user_clubs_listing(client, owner, student, club):
    other_owner = signup(client, "other@example.com", "Other")
    other = make_club(client, other_owner[1], "Chess Club", description="strategy games")
    for c, headers in ((club, owner[1]), (other, other_owner[1])):
        client.post(f"/clubs/{c['id']}/add-member", json={"userEmail": "student@example.com"}, headers=headers)

    resp = client.get("/user/clubs", headers=student[1])
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["totalJoinedClubs"] == 2
    assert [c["name"] for c in data["clubs"]] == ["Chess Club", "Shutter Club"]
    first = data["clubs"][0]
    assert first["membershipRole"] == "member"
    assert first["owner"]["name"] == "Other"
    assert first["memberCount"] == 2
    assert first["joinedAt"]

    assert client.get("/user/clubs").status_code == 401
    public = client.get(f"/users/{student[0]}/clubs").json()
    assert public["totalJoinedClubs"] == 2
    assert client.get("/users/missing/clubs").status_code == 404


def test_search_covers_requirements_and_schedule(client, owner):
    make_club(client, owner[1], "Shutter Club", category="Arts", tags=["photo"], meetingSchedule="Fridays at noon")
    make_club(
        client,
        owner[1],
        "Chess Club",
        description="strategy games",
        category="Games",
        tags=["board"],
        requirements="Bring your own photo ID",
    )
    make_club(client, owner[1], "Choir", description="we sing on fridays", category="Music")

    resp = client.post("/clubs/search", json={"query": "Friday"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["query"] == "Friday"
    assert [c["name"] for c in data["clubs"]] == ["Choir", "Shutter Club"]
    assert data["totalResults"] == 2

    # "photo" hits the Shutter description and tag, and the Chess requirements
    ranked = client.post("/clubs/search", json={"query": "photo"}).json()["clubs"]
    assert [c["name"] for c in ranked] == ["Shutter Club", "Chess Club"]
    assert ranked[0]["relevanceScore"] == 8.1
    assert ranked[1]["relevanceScore"] == 2.1
    assert ranked[0]["owner"]["name"] == "Owner"
    assert ranked[0]["counts"] == {"members": 1, "events": 0}


def test_search_filters(client, owner):
    make_club(client, owner[1], "Shutter Club", category="Arts", tags=["photo", "editing"])
    make_club(client, owner[1], "Lens Lab", description="photography for beginners", category="Science", tags=["optics"])

    def names(**body):
        resp = client.post("/clubs/search", json={"query": "photo", **body})
        return [c["name"] for c in resp.json()["clubs"]]

    assert names(categories=["Science"]) == ["Lens Lab"]
    assert names(categories=["Arts", "Science"]) == ["Shutter Club", "Lens Lab"]
    assert names(tags=["editing", "unused"]) == ["Shutter Club"]
    assert names(tags=["knitting"]) == []

    assert client.post("/clubs/search", json={}).status_code == 400
    resp = client.post("/clubs/search", json={"query": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Search query is required and must be a string"
