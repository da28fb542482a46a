import datetime
import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator
from urllib.parse import urlparse

import psycopg2
import psycopg2.extras

from .config import DB_FILE, get_database_url
from .models import (
    Address,
    Announcement,
    Club,
    ClubMember,
    ClubSummary,
    Event,
    MembershipRequest,
    STATUS_PENDING,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

# ``DB_FILE`` is imported from ``clubhub.config`` so tests can monkeypatch it.
DATABASE_URL = get_database_url()
IS_PG = DATABASE_URL.startswith("postgres")

# Raised on unique or foreign key violations by either backend.
IntegrityError = (sqlite3.IntegrityError, psycopg2.IntegrityError)


class _PgCursor:
    def __init__(self, cursor):
        self._c = cursor

    def execute(self, query, params=None):
        q = query.replace("?", "%s")
        self._c.execute(q, params or [])
        return self

    def fetchone(self):
        return self._c.fetchone()

    def fetchall(self):
        return self._c.fetchall()

    def __iter__(self):
        return iter(self._c)

    def __getattr__(self, name):
        return getattr(self._c, name)


class _PgConnection:
    def __init__(self, conn):
        self._conn = conn

    def cursor(self, *a, **kw):
        return _PgCursor(self._conn.cursor(*a, **kw))

    def execute(self, query, params=None):
        return self.cursor().execute(query, params)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()

    def __getattr__(self, name):
        return getattr(self._conn, name)


def _connect():
    """Return a DB connection based on ``DATABASE_URL``."""
    if IS_PG:
        conn = psycopg2.connect(DATABASE_URL, cursor_factory=psycopg2.extras.RealDictCursor)
        conn = _PgConnection(conn)
    else:
        path = DB_FILE
        if DATABASE_URL.startswith("sqlite://"):
            path = Path(urlparse(DATABASE_URL).path)
        conn = sqlite3.connect(path, timeout=10)
        conn.row_factory = sqlite3.Row
    _init_schema(conn)
    return conn


@contextmanager
def transaction() -> Generator[object, None, None]:
    """Context manager yielding a connection with an active transaction."""
    conn = _connect()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def _scope(conn=None):
    """Use ``conn`` when given, otherwise a short-lived connection of our own.

    Only the connection opened here is committed and closed.
    """
    if conn is not None:
        yield conn
        return
    with transaction() as own:
        yield own


_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        name TEXT,
        password_hash TEXT,
        image TEXT,
        phone TEXT,
        student_id TEXT,
        department TEXT,
        year TEXT,
        bio TEXT,
        created_at TEXT
    )""",
    "CREATE TABLE IF NOT EXISTS auth_tokens (token TEXT PRIMARY KEY, user_id TEXT, ts TEXT)",
    "CREATE TABLE IF NOT EXISTS refresh_tokens (user_id TEXT PRIMARY KEY, token TEXT, expires TEXT)",
    """CREATE TABLE IF NOT EXISTS clubs (
        club_id TEXT PRIMARY KEY,
        name TEXT UNIQUE NOT NULL,
        description TEXT,
        category TEXT,
        owner_id TEXT NOT NULL,
        logo TEXT,
        is_public INTEGER DEFAULT 1,
        max_members INTEGER,
        tags TEXT,
        requirements TEXT,
        meeting_schedule TEXT,
        contact_email TEXT,
        is_active INTEGER DEFAULT 1,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS club_members (
        member_id TEXT PRIMARY KEY,
        club_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT,
        joined_at TEXT,
        UNIQUE (club_id, user_id)
    )""",
    """CREATE TABLE IF NOT EXISTS membership_requests (
        request_id TEXT PRIMARY KEY,
        club_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        status TEXT NOT NULL,
        message TEXT,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS events (
        event_id TEXT PRIMARY KEY,
        club_id TEXT NOT NULL,
        title TEXT,
        description TEXT,
        date TEXT,
        end_date TEXT,
        venue TEXT,
        max_participants INTEGER,
        category TEXT,
        registration_link TEXT,
        is_active INTEGER DEFAULT 1,
        created_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS announcements (
        announcement_id TEXT PRIMARY KEY,
        club_id TEXT NOT NULL,
        author_id TEXT,
        title TEXT,
        content TEXT,
        is_active INTEGER DEFAULT 1,
        created_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS addresses (
        address_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        label TEXT,
        street TEXT,
        city TEXT,
        state TEXT,
        zip_code TEXT,
        country TEXT,
        is_default INTEGER DEFAULT 0,
        created_at TEXT
    )""",
    "CREATE TABLE IF NOT EXISTS complaints (complaint_id TEXT PRIMARY KEY, text TEXT, created_at TEXT)",
)


def _init_schema(conn) -> None:
    cur = conn.cursor()
    for ddl in _SCHEMA:
        cur.execute(ddl)
    conn.commit()


# --- row conversion ---------------------------------------------------------

def _ts(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_ts(value: str | None) -> datetime.datetime | None:
    return datetime.datetime.fromisoformat(value) if value else None


def _row_to_user(row) -> User:
    return User(
        user_id=row["user_id"],
        email=row["email"],
        name=row["name"],
        password_hash=row["password_hash"] or "",
        image=row["image"],
        phone=row["phone"],
        student_id=row["student_id"],
        department=row["department"],
        year=row["year"],
        bio=row["bio"],
        created_at=_parse_ts(row["created_at"]),
    )


def _row_to_club(row) -> Club:
    return Club(
        club_id=row["club_id"],
        name=row["name"],
        description=row["description"] or "",
        category=row["category"] or "",
        owner_id=row["owner_id"],
        logo=row["logo"],
        is_public=bool(row["is_public"]),
        max_members=row["max_members"],
        tags=json.loads(row["tags"]) if row["tags"] else [],
        requirements=row["requirements"],
        meeting_schedule=row["meeting_schedule"],
        contact_email=row["contact_email"],
        is_active=bool(row["is_active"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _row_to_member(row) -> ClubMember:
    return ClubMember(
        member_id=row["member_id"],
        club_id=row["club_id"],
        user_id=row["user_id"],
        role=row["role"],
        joined_at=_parse_ts(row["joined_at"]),
    )


def _row_to_request(row) -> MembershipRequest:
    return MembershipRequest(
        request_id=row["request_id"],
        club_id=row["club_id"],
        user_id=row["user_id"],
        status=row["status"],
        message=row["message"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _row_to_event(row) -> Event:
    return Event(
        event_id=row["event_id"],
        club_id=row["club_id"],
        title=row["title"],
        date=_parse_ts(row["date"]),
        venue=row["venue"],
        description=row["description"],
        end_date=_parse_ts(row["end_date"]),
        max_participants=row["max_participants"],
        category=row["category"],
        registration_link=row["registration_link"],
        is_active=bool(row["is_active"]),
        created_at=_parse_ts(row["created_at"]),
    )


def _row_to_announcement(row) -> Announcement:
    return Announcement(
        announcement_id=row["announcement_id"],
        club_id=row["club_id"],
        author_id=row["author_id"],
        title=row["title"],
        content=row["content"],
        is_active=bool(row["is_active"]),
        created_at=_parse_ts(row["created_at"]),
    )


def _row_to_address(row) -> Address:
    return Address(
        address_id=row["address_id"],
        user_id=row["user_id"],
        street=row["street"],
        city=row["city"],
        label=row["label"],
        state=row["state"],
        zip_code=row["zip_code"],
        country=row["country"],
        is_default=bool(row["is_default"]),
        created_at=_parse_ts(row["created_at"]),
    )


# --- users and tokens -------------------------------------------------------

def create_user(user: User, conn=None) -> None:
    """Insert a new user account."""
    with _scope(conn) as c:
        c.cursor().execute(
            """
            INSERT INTO users(
                user_id, email, name, password_hash, image, phone,
                student_id, department, year, bio, created_at
            ) VALUES (?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                user.user_id,
                user.email,
                user.name,
                user.password_hash,
                user.image,
                user.phone,
                user.student_id,
                user.department,
                user.year,
                user.bio,
                _ts(user.created_at),
            ),
        )


def update_user(user: User, conn=None) -> None:
    """Persist the editable profile fields of ``user``."""
    with _scope(conn) as c:
        c.cursor().execute(
            """
            UPDATE users SET name = ?, image = ?, phone = ?, student_id = ?,
                department = ?, year = ?, bio = ?
            WHERE user_id = ?
            """,
            (
                user.name,
                user.image,
                user.phone,
                user.student_id,
                user.department,
                user.year,
                user.bio,
                user.user_id,
            ),
        )


def get_user(user_id: str, conn=None) -> User | None:
    """Return a single :class:`User` by id or ``None`` if not found."""
    with _scope(conn) as c:
        row = c.cursor().execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
    return _row_to_user(row) if row else None


def get_user_by_email(email: str, conn=None) -> User | None:
    with _scope(conn) as c:
        row = c.cursor().execute(
            "SELECT * FROM users WHERE LOWER(email) = ?", (email.strip().lower(),)
        ).fetchone()
    return _row_to_user(row) if row else None


def insert_token(token: str, user_id: str) -> None:
    """Persist an authentication token issued now."""
    with _scope() as c:
        c.cursor().execute(
            "INSERT INTO auth_tokens(token, user_id, ts) VALUES (?,?,?)",
            (token, user_id, _ts(utcnow())),
        )


def get_token(token: str) -> tuple[str, datetime.datetime] | None:
    """Retrieve a ``(user_id, issued_at)`` tuple for the token."""
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT user_id, ts FROM auth_tokens WHERE token = ?", (token,)
        ).fetchone()
    if not row:
        return None
    return row["user_id"], _parse_ts(row["ts"])


def delete_token(token: str) -> None:
    with _scope() as c:
        c.cursor().execute("DELETE FROM auth_tokens WHERE token = ?", (token,))


def insert_refresh_token(user_id: str, token: str, expires: datetime.datetime) -> None:
    """Persist or replace the refresh token of a user."""
    with _scope() as c:
        cur = c.cursor()
        cur.execute("DELETE FROM refresh_tokens WHERE user_id = ?", (user_id,))
        cur.execute(
            "INSERT INTO refresh_tokens(user_id, token, expires) VALUES (?,?,?)",
            (user_id, token, _ts(expires)),
        )


def get_refresh_token(token: str) -> tuple[str, datetime.datetime] | None:
    """Return ``(user_id, expires)`` for the refresh token."""
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT user_id, expires FROM refresh_tokens WHERE token = ?", (token,)
        ).fetchone()
    if not row:
        return None
    return row["user_id"], _parse_ts(row["expires"])


def delete_refresh_token(user_id: str) -> None:
    with _scope() as c:
        c.cursor().execute("DELETE FROM refresh_tokens WHERE user_id = ?", (user_id,))


# --- clubs ------------------------------------------------------------------

_CLUB_COLUMNS = (
    "club_id, name, description, category, owner_id, logo, is_public, max_members, "
    "tags, requirements, meeting_schedule, contact_email, is_active, created_at, updated_at"
)


def _club_params(club: Club) -> tuple:
    return (
        club.club_id,
        club.name,
        club.description,
        club.category,
        club.owner_id,
        club.logo,
        int(club.is_public),
        club.max_members,
        json.dumps(club.tags or []),
        club.requirements,
        club.meeting_schedule,
        club.contact_email,
        int(club.is_active),
        _ts(club.created_at),
        _ts(club.updated_at),
    )


def create_club(club: Club, conn=None) -> None:
    """Insert a new club record into the database."""
    with _scope(conn) as c:
        c.cursor().execute(
            f"INSERT INTO clubs({_CLUB_COLUMNS}) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
            _club_params(club),
        )


def save_club(club: Club, conn=None) -> None:
    """Write every mutable column of ``club`` back to its row."""
    club.updated_at = utcnow()
    with _scope(conn) as c:
        c.cursor().execute(
            """
            UPDATE clubs SET name = ?, description = ?, category = ?, logo = ?,
                is_public = ?, max_members = ?, tags = ?, requirements = ?,
                meeting_schedule = ?, contact_email = ?, is_active = ?, updated_at = ?
            WHERE club_id = ?
            """,
            (
                club.name,
                club.description,
                club.category,
                club.logo,
                int(club.is_public),
                club.max_members,
                json.dumps(club.tags or []),
                club.requirements,
                club.meeting_schedule,
                club.contact_email,
                int(club.is_active),
                _ts(club.updated_at),
                club.club_id,
            ),
        )


def get_club(club_id: str, conn=None) -> Club | None:
    """Return a single :class:`Club` by id or ``None`` if not found."""
    with _scope(conn) as c:
        row = c.cursor().execute("SELECT * FROM clubs WHERE club_id = ?", (club_id,)).fetchone()
    return _row_to_club(row) if row else None


def get_club_by_name(name: str, conn=None) -> Club | None:
    with _scope(conn) as c:
        row = c.cursor().execute("SELECT * FROM clubs WHERE name = ?", (name,)).fetchone()
    return _row_to_club(row) if row else None


def list_clubs(category: str | None = None, search: str | None = None, active_only: bool = True) -> list[Club]:
    """Return clubs newest first, optionally filtered by category and search text."""
    query = "SELECT * FROM clubs WHERE 1 = 1"
    params: list = []
    if active_only:
        query += " AND is_active = 1"
    if category:
        query += " AND category = ?"
        params.append(category)
    if search:
        pattern = f"%{search.lower()}%"
        query += " AND (LOWER(name) LIKE ? OR LOWER(description) LIKE ?)"
        params.extend([pattern, pattern])
    query += " ORDER BY created_at DESC"
    with _scope() as c:
        rows = c.cursor().execute(query, params).fetchall()
    return [_row_to_club(r) for r in rows]


def search_clubs(text: str, categories: list[str] | None = None) -> list[Club]:
    """Active clubs whose name, description, requirements or schedule contain ``text``."""
    pattern = f"%{text.lower()}%"
    query = (
        "SELECT * FROM clubs WHERE is_active = 1 AND ("
        "LOWER(name) LIKE ? OR LOWER(description) LIKE ? "
        "OR LOWER(COALESCE(requirements, '')) LIKE ? OR LOWER(COALESCE(meeting_schedule, '')) LIKE ?)"
    )
    params: list = [pattern] * 4
    if categories:
        query += f" AND category IN ({','.join('?' for _ in categories)})"
        params.extend(categories)
    query += " ORDER BY name ASC, created_at DESC"
    with _scope() as c:
        rows = c.cursor().execute(query, params).fetchall()
    return [_row_to_club(r) for r in rows]


def list_owned_clubs(user_id: str) -> list[Club]:
    with _scope() as c:
        rows = c.cursor().execute(
            "SELECT * FROM clubs WHERE owner_id = ? ORDER BY created_at DESC", (user_id,)
        ).fetchall()
    return [_row_to_club(r) for r in rows]


def delete_club(club_id: str, conn=None) -> None:
    """Delete a club together with everything that belongs to it."""
    with _scope(conn) as c:
        cur = c.cursor()
        for table in ("club_members", "membership_requests", "events", "announcements"):
            cur.execute(f"DELETE FROM {table} WHERE club_id = ?", (club_id,))
        cur.execute("DELETE FROM clubs WHERE club_id = ?", (club_id,))


def list_club_summaries() -> list[ClubSummary]:
    """Return active clubs with member and upcoming event counts, newest first."""
    now = _ts(utcnow())
    with _scope() as c:
        rows = c.cursor().execute(
            """
            SELECT c.*,
                (SELECT COUNT(*) FROM club_members m WHERE m.club_id = c.club_id) AS member_count,
                (SELECT COUNT(*) FROM events e
                    WHERE e.club_id = c.club_id AND e.is_active = 1 AND e.date >= ?) AS event_count
            FROM clubs c
            WHERE c.is_active = 1
            ORDER BY c.created_at DESC
            """,
            (now,),
        ).fetchall()
    summaries = []
    for row in rows:
        club = _row_to_club(row)
        summaries.append(
            ClubSummary(
                name=club.name,
                description=club.description,
                category=club.category,
                club_id=club.club_id,
                tags=club.tags,
                member_count=row["member_count"],
                event_count=row["event_count"],
                created_at=club.created_at,
            )
        )
    return summaries


# --- memberships ------------------------------------------------------------

def add_club_member(member: ClubMember, conn=None) -> None:
    """Insert a membership row.

    Raises one of :data:`IntegrityError` when the user already belongs to
    the club.
    """
    with _scope(conn) as c:
        c.cursor().execute(
            "INSERT INTO club_members(member_id, club_id, user_id, role, joined_at) VALUES (?,?,?,?,?)",
            (member.member_id, member.club_id, member.user_id, member.role, _ts(member.joined_at)),
        )


def get_club_member(club_id: str, user_id: str, conn=None) -> ClubMember | None:
    """Return the membership of ``user_id`` in ``club_id`` if there is one."""
    with _scope(conn) as c:
        row = c.cursor().execute(
            "SELECT * FROM club_members WHERE club_id = ? AND user_id = ?",
            (club_id, user_id),
        ).fetchone()
    return _row_to_member(row) if row else None


def get_member(member_id: str) -> ClubMember | None:
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT * FROM club_members WHERE member_id = ?", (member_id,)
        ).fetchone()
    return _row_to_member(row) if row else None


def update_member_role(member_id: str, role: str, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute("UPDATE club_members SET role = ? WHERE member_id = ?", (role, member_id))


def remove_club_member(member_id: str, conn=None) -> None:
    """Delete a membership record."""
    with _scope(conn) as c:
        c.cursor().execute("DELETE FROM club_members WHERE member_id = ?", (member_id,))


def list_club_members(club_id: str) -> list[ClubMember]:
    """Members of a club, earliest joiner first."""
    with _scope() as c:
        rows = c.cursor().execute(
            "SELECT * FROM club_members WHERE club_id = ? ORDER BY joined_at ASC",
            (club_id,),
        ).fetchall()
    return [_row_to_member(r) for r in rows]


def list_user_memberships(user_id: str) -> list[ClubMember]:
    """Memberships of a user, most recent first."""
    with _scope() as c:
        rows = c.cursor().execute(
            "SELECT * FROM club_members WHERE user_id = ? ORDER BY joined_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_member(r) for r in rows]


def count_club_members(club_id: str) -> int:
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT COUNT(*) AS n FROM club_members WHERE club_id = ?", (club_id,)
        ).fetchone()
    return row["n"]


# --- membership requests ----------------------------------------------------

def create_membership_request(req: MembershipRequest, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            """
            INSERT INTO membership_requests(
                request_id, club_id, user_id, status, message, created_at, updated_at
            ) VALUES (?,?,?,?,?,?,?)
            """,
            (
                req.request_id,
                req.club_id,
                req.user_id,
                req.status,
                req.message,
                _ts(req.created_at),
                _ts(req.updated_at),
            ),
        )


def get_membership_request(request_id: str, conn=None) -> MembershipRequest | None:
    with _scope(conn) as c:
        row = c.cursor().execute(
            "SELECT * FROM membership_requests WHERE request_id = ?", (request_id,)
        ).fetchone()
    return _row_to_request(row) if row else None


def find_pending_request(club_id: str, user_id: str) -> MembershipRequest | None:
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT * FROM membership_requests WHERE club_id = ? AND user_id = ? AND status = ?",
            (club_id, user_id, STATUS_PENDING),
        ).fetchone()
    return _row_to_request(row) if row else None


def list_pending_requests(club_id: str) -> list[MembershipRequest]:
    """Pending requests of a club, newest first."""
    with _scope() as c:
        rows = c.cursor().execute(
            """
            SELECT * FROM membership_requests
            WHERE club_id = ? AND status = ?
            ORDER BY created_at DESC
            """,
            (club_id, STATUS_PENDING),
        ).fetchall()
    return [_row_to_request(r) for r in rows]


def transition_request(request_id: str, status: str, conn=None) -> bool:
    """Move a PENDING request to ``status``.

    Returns ``False`` when the request is no longer pending; the update is
    conditional so a concurrent transition cannot be applied twice.
    """
    with _scope(conn) as c:
        cur = c.cursor().execute(
            """
            UPDATE membership_requests SET status = ?, updated_at = ?
            WHERE request_id = ? AND status = ?
            """,
            (status, _ts(utcnow()), request_id, STATUS_PENDING),
        )
        return cur.rowcount == 1


# --- events and announcements -----------------------------------------------

def create_event(event: Event, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            """
            INSERT INTO events(
                event_id, club_id, title, description, date, end_date, venue,
                max_participants, category, registration_link, is_active, created_at
            ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                event.event_id,
                event.club_id,
                event.title,
                event.description,
                _ts(event.date),
                _ts(event.end_date),
                event.venue,
                event.max_participants,
                event.category,
                event.registration_link,
                int(event.is_active),
                _ts(event.created_at),
            ),
        )


def get_event(event_id: str) -> Event | None:
    with _scope() as c:
        row = c.cursor().execute("SELECT * FROM events WHERE event_id = ?", (event_id,)).fetchone()
    return _row_to_event(row) if row else None


def set_event_active(event_id: str, active: bool, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            "UPDATE events SET is_active = ? WHERE event_id = ?", (int(active), event_id)
        )


def list_events(
    club_id: str | None = None,
    upcoming_only: bool = False,
    limit: int | None = None,
) -> list[Event]:
    """Active events in ascending date order."""
    query = "SELECT * FROM events WHERE is_active = 1"
    params: list = []
    if club_id:
        query += " AND club_id = ?"
        params.append(club_id)
    if upcoming_only:
        query += " AND date >= ?"
        params.append(_ts(utcnow()))
    query += " ORDER BY date ASC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    with _scope() as c:
        rows = c.cursor().execute(query, params).fetchall()
    return [_row_to_event(r) for r in rows]


def count_events(club_id: str) -> int:
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT COUNT(*) AS n FROM events WHERE club_id = ?", (club_id,)
        ).fetchone()
    return row["n"]


def create_announcement(announcement: Announcement, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            """
            INSERT INTO announcements(
                announcement_id, club_id, author_id, title, content, is_active, created_at
            ) VALUES (?,?,?,?,?,?,?)
            """,
            (
                announcement.announcement_id,
                announcement.club_id,
                announcement.author_id,
                announcement.title,
                announcement.content,
                int(announcement.is_active),
                _ts(announcement.created_at),
            ),
        )


def list_announcements(club_id: str | None = None, limit: int | None = None) -> list[Announcement]:
    """Active announcements, newest first."""
    query = "SELECT * FROM announcements WHERE is_active = 1"
    params: list = []
    if club_id:
        query += " AND club_id = ?"
        params.append(club_id)
    query += " ORDER BY created_at DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    with _scope() as c:
        rows = c.cursor().execute(query, params).fetchall()
    return [_row_to_announcement(r) for r in rows]


def count_announcements(club_id: str) -> int:
    with _scope() as c:
        row = c.cursor().execute(
            "SELECT COUNT(*) AS n FROM announcements WHERE club_id = ?", (club_id,)
        ).fetchone()
    return row["n"]


def create_complaint(complaint_id: str, text: str) -> None:
    with _scope() as c:
        c.cursor().execute(
            "INSERT INTO complaints(complaint_id, text, created_at) VALUES (?,?,?)",
            (complaint_id, text, _ts(utcnow())),
        )


# --- address book -----------------------------------------------------------

def create_address(address: Address, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            """
            INSERT INTO addresses(
                address_id, user_id, label, street, city, state, zip_code, country, is_default, created_at
            ) VALUES (?,?,?,?,?,?,?,?,?,?)
            """,
            (
                address.address_id,
                address.user_id,
                address.label,
                address.street,
                address.city,
                address.state,
                address.zip_code,
                address.country,
                int(address.is_default),
                _ts(address.created_at),
            ),
        )


def save_address(address: Address, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            """
            UPDATE addresses SET label = ?, street = ?, city = ?, state = ?, zip_code = ?,
                country = ?, is_default = ?
            WHERE address_id = ?
            """,
            (
                address.label,
                address.street,
                address.city,
                address.state,
                address.zip_code,
                address.country,
                int(address.is_default),
                address.address_id,
            ),
        )


def get_address(address_id: str, user_id: str, conn=None) -> Address | None:
    """Return the address only when it belongs to ``user_id``."""
    with _scope(conn) as c:
        row = c.cursor().execute(
            "SELECT * FROM addresses WHERE address_id = ? AND user_id = ?", (address_id, user_id)
        ).fetchone()
    return _row_to_address(row) if row else None


def list_addresses(user_id: str) -> list[Address]:
    """The default address first, then oldest first."""
    with _scope() as c:
        rows = c.cursor().execute(
            "SELECT * FROM addresses WHERE user_id = ? ORDER BY is_default DESC, created_at ASC",
            (user_id,),
        ).fetchall()
    return [_row_to_address(r) for r in rows]


def clear_default_address(user_id: str, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute(
            "UPDATE addresses SET is_default = 0 WHERE user_id = ? AND is_default = 1", (user_id,)
        )


def delete_address(address_id: str, conn=None) -> None:
    with _scope(conn) as c:
        c.cursor().execute("DELETE FROM addresses WHERE address_id = ?", (address_id,))
