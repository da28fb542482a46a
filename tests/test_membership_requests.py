import pytest

import clubhub.storage as storage
from clubhub.models import STATUS_APPROVED, STATUS_PENDING
from clubhub.services import clubs as club_service
from clubhub.services.exceptions import Conflict
from conftest import make_club, signup


def file_request(client, club_id, headers, message="Let me in"):
    resp = client.post(f"/clubs/{club_id}/requests", json={"message": message}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def membership_rows(club_id, user_id):
    with storage._connect() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM club_members WHERE club_id = ? AND user_id = ?",
            (club_id, user_id),
        ).fetchone()[0]


def test_approve_creates_exactly_one_membership(client, owner, student, club):
    student_id, student_headers = student
    req = file_request(client, club["id"], student_headers)
    assert req["status"] == STATUS_PENDING
    assert req["user"]["email"] == "student@example.com"

    url = f"/clubs/{club['id']}/requests/{req['id']}/approve"
    resp = client.post(url, headers=owner[1])
    assert resp.status_code == 200
    assert resp.json() == {"message": "Membership request approved successfully", "approved": True}
    assert membership_rows(club["id"], student_id) == 1
    assert storage.get_membership_request(req["id"]).status == STATUS_APPROVED
    assert storage.get_club_member(club["id"], student_id).role == "member"

    again = client.post(url, headers=owner[1])
    assert again.status_code == 400
    assert again.json()["detail"] == "Request has already been processed"
    assert membership_rows(club["id"], student_id) == 1


def test_approve_preconditions(client, owner, student, club):
    student_id, student_headers = student
    req = file_request(client, club["id"], student_headers)
    url = f"/clubs/{club['id']}/requests/{req['id']}/approve"

    assert client.post(url).status_code == 401
    assert client.post(url, headers={"Authorization": "Bearer nope"}).status_code == 401

    resp = client.post(url, headers=student_headers)
    assert resp.status_code == 403
    assert storage.get_membership_request(req["id"]).status == STATUS_PENDING
    assert membership_rows(club["id"], student_id) == 0

    assert client.post(f"/clubs/missing/requests/{req['id']}/approve", headers=owner[1]).status_code == 404
    assert client.post(f"/clubs/{club['id']}/requests/missing/approve", headers=owner[1]).status_code == 404

    other = make_club(client, owner[1], "Chess Club", description="strategy games")
    resp = client.post(f"/clubs/{other['id']}/requests/{req['id']}/approve", headers=owner[1])
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Request does not belong to this club"


def test_losing_a_concurrent_approval(client, owner, student, club, monkeypatch):
    student_id, student_headers = student
    req = file_request(client, club["id"], student_headers)
    stale = storage.get_membership_request(req["id"])

    # another approval commits between our read and our write
    assert storage.transition_request(req["id"], STATUS_APPROVED)
    monkeypatch.setattr(storage, "get_membership_request", lambda request_id, conn=None: stale)

    with pytest.raises(Conflict) as exc:
        club_service.approve_request(owner[0], club["id"], req["id"])
    assert exc.value.status_code == 400
    assert exc.value.message == "Request has already been processed"
    assert membership_rows(club["id"], student_id) == 0


def test_failed_membership_insert_rolls_back_status(client, owner, student, club, monkeypatch):
    student_id, student_headers = student
    req = file_request(client, club["id"], student_headers)

    def broken(member, conn=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(storage, "add_club_member", broken)
    resp = client.post(f"/clubs/{club['id']}/requests/{req['id']}/approve", headers=owner[1])
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}

    assert storage.get_membership_request(req["id"]).status == STATUS_PENDING


def test_approve_when_already_member_keeps_request_pending(client, owner, student, club):
    student_id, student_headers = student
    req = file_request(client, club["id"], student_headers)
    client.post(
        f"/clubs/{club['id']}/add-member",
        json={"userEmail": "student@example.com"},
        headers=owner[1],
    )
    resp = client.post(f"/clubs/{club['id']}/requests/{req['id']}/approve", headers=owner[1])
    assert resp.status_code == 409
    assert storage.get_membership_request(req["id"]).status == STATUS_PENDING
    assert membership_rows(club["id"], student_id) == 1


def test_request_rules(client, owner, student, club):
    student_headers = student[1]
    file_request(client, club["id"], student_headers)

    dup = client.post(f"/clubs/{club['id']}/requests", json={}, headers=student_headers)
    assert dup.status_code == 409
    own = client.post(f"/clubs/{club['id']}/requests", json={}, headers=owner[1])
    assert own.status_code == 409
    assert client.post("/clubs/missing/requests", json={}, headers=student_headers).status_code == 404


def test_listing_and_status_check(client, owner, student, club):
    student_id, student_headers = student
    base = f"/clubs/{club['id']}/requests"

    status = client.get(base, params={"userId": student_id}, headers=student_headers).json()
    assert status == {"hasActiveRequest": False, "requestId": None}

    req = file_request(client, club["id"], student_headers)
    status = client.get(base, params={"userId": student_id}, headers=student_headers).json()
    assert status == {"hasActiveRequest": True, "requestId": req["id"]}
    assert client.get(base, params={"userId": owner[0]}, headers=student_headers).status_code == 403

    pending = client.get(base, headers=owner[1]).json()
    assert [r["id"] for r in pending] == [req["id"]]
    assert pending[0]["user"]["name"] == "Student"
    assert client.get(base, headers=student_headers).status_code == 403


def test_patch_action(client, owner, student, club):
    req = file_request(client, club["id"], student[1])
    url = f"/clubs/{club['id']}/requests/{req['id']}"

    assert client.patch(url, json={"action": "maybe"}, headers=owner[1]).status_code == 400

    resp = client.patch(url, json={"action": "reject"}, headers=owner[1])
    assert resp.status_code == 200
    assert resp.json()["status"] == "REJECTED"
    assert resp.json()["user"]["id"] == student[0]

    again = client.patch(url, json={"action": "approve"}, headers=owner[1])
    assert again.status_code == 409
    assert membership_rows(club["id"], student[0]) == 0

    # a rejected user may ask again
    second = file_request(client, club["id"], student[1])
    resp = client.patch(
        f"/clubs/{club['id']}/requests/{second['id']}", json={"action": "approve"}, headers=owner[1]
    )
    assert resp.json()["status"] == "APPROVED"
    assert membership_rows(club["id"], student[0]) == 1


def test_reject_endpoint(client, owner, student, club):
    req = file_request(client, club["id"], student[1])
    url = f"/clubs/{club['id']}/requests/{req['id']}/reject"
    assert client.post(url, headers=student[1]).status_code == 403
    assert client.post(url, headers=owner[1]).json()["rejected"] is True
    assert client.post(url, headers=owner[1]).status_code == 400


def test_third_party_cannot_see_anything(client, owner, student, club):
    _, outsider_headers = signup(client, "outsider@example.com")
    req = file_request(client, club["id"], student[1])
    resp = client.patch(
        f"/clubs/{club['id']}/requests/{req['id']}", json={"action": "approve"}, headers=outsider_headers
    )
    assert resp.status_code == 403
    assert storage.get_membership_request(req["id"]).status == STATUS_PENDING
