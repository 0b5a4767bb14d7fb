"""
Shared fixtures for the portal API tests.

Provides an in-memory stand-in for the Supabase client (tables, storage
and auth) plus a FastAPI TestClient with the Supabase and user
dependencies overridden.

Usage:
    cd backend && pytest tests -v
"""

import os
import re
import sys
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Keep the real hosted services out of the test run
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["REALTIME_ENABLED"] = "false"

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def generate_uuid() -> str:
    """Generate a valid UUID string."""
    return str(uuid.uuid4())


# ============================================================================
# FAKE SUPABASE CLIENT
# ============================================================================

_EMBED_PATTERN = re.compile(r"(\w+):(\w+)\(\*\)")


class MockSupabaseResponse:
    """Mock Supabase response object."""
    def __init__(self, data: List[Dict] = None):
        self.data = data if data is not None else []


class MockSupabaseQuery:
    """Chainable query builder backed by a dict of table lists.

    Supports the subset of the PostgREST builder the services use:
    select (with ``alias:table(*)`` embeds), eq, in_, order, limit,
    insert, update, upsert and delete.
    """

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._filters: List = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._embeds: List[tuple] = []
        self._op = "select"
        self._payload: Any = None
        self._on_conflict: Optional[str] = None

    @property
    def _rows(self) -> List[Dict]:
        return self._db.tables.setdefault(self._table, [])

    def select(self, columns: str = "*", *args, **kwargs):
        self._embeds = _EMBED_PATTERN.findall(columns)
        return self

    def eq(self, field: str, value: Any):
        self._filters.append(lambda row: row.get(field) == value)
        return self

    def in_(self, field: str, values: List):
        self._filters.append(lambda row: row.get(field) in values)
        return self

    def order(self, field: str, desc: bool = False, **kwargs):
        self._order = (field, desc)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload: Dict):
        self._op, self._payload = "update", payload
        return self

    def upsert(self, payload: Dict, on_conflict: str = "id", **kwargs):
        self._op, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self._op = "delete"
        return self

    def _matches(self, row: Dict) -> bool:
        return all(f(row) for f in self._filters)

    def _new_row(self, payload: Dict) -> Dict:
        row = {
            "id": generate_uuid(),
            "created_at": datetime.now(timezone.utc).isoformat(),
            **payload,
        }
        self._rows.append(row)
        return row

    def _with_embeds(self, row: Dict) -> Dict:
        row = dict(row)
        for alias, table in self._embeds:
            target_id = row.get(f"{alias}_id")
            match = next(
                (r for r in self._db.tables.get(table, []) if r.get("id") == target_id),
                None,
            )
            row[alias] = dict(match) if match else None
        return row

    def execute(self):
        self._db.calls.append((self._table, self._op))

        if self._op == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            return MockSupabaseResponse([dict(self._new_row(p)) for p in payloads])

        if self._op == "upsert":
            keys = [k.strip() for k in self._on_conflict.split(",")]
            for row in self._rows:
                if all(row.get(k) == self._payload.get(k) for k in keys):
                    row.update(self._payload)
                    return MockSupabaseResponse([dict(row)])
            return MockSupabaseResponse([dict(self._new_row(self._payload))])

        if self._op == "update":
            updated = []
            for row in self._rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return MockSupabaseResponse(updated)

        if self._op == "delete":
            removed = [row for row in self._rows if self._matches(row)]
            self._db.tables[self._table] = [r for r in self._rows if not self._matches(r)]
            return MockSupabaseResponse(removed)

        rows = [self._with_embeds(r) for r in self._rows if self._matches(r)]
        if self._order:
            field, desc = self._order
            rows.sort(key=lambda r: (r.get(field) is None, str(r.get(field) or "")), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return MockSupabaseResponse(rows)


class MockStorageBucket:
    def __init__(self, db: "FakeSupabase", bucket: str):
        self._db = db
        self._bucket = bucket

    def upload(self, path: str, file: bytes, file_options: Dict = None):
        self._db.uploads.append(
            {"bucket": self._bucket, "path": path, "size": len(file), "options": file_options}
        )
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/{self._bucket}/{path}"


class MockStorage:
    def __init__(self, db: "FakeSupabase"):
        self._db = db

    def from_(self, bucket: str) -> MockStorageBucket:
        return MockStorageBucket(self._db, bucket)


class FakeSupabase:
    """In-memory Supabase client: ``table()``, ``storage`` and ``auth``."""

    def __init__(self, tables: Dict[str, List[Dict]] = None):
        self.tables: Dict[str, List[Dict]] = tables or {}
        self.calls: List[tuple] = []
        self.uploads: List[Dict] = []
        self.storage = MockStorage(self)
        self.auth = SimpleNamespace()

    def table(self, name: str) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, name)


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================

def make_mock_application(
    application_id: str = None,
    application_type: str = "fun_grant",
    status: str = "pending",
    applicant_name: str = "Jane Doe",
    created_at: str = None,
) -> Dict[str, Any]:
    """Factory function to create a stored application row."""
    return {
        "id": application_id or generate_uuid(),
        "created_at": created_at or datetime.now(timezone.utc).isoformat(),
        "application_type": application_type,
        "status": status,
        "applicant_name": applicant_name,
        "applicant_email": "jane@example.com",
        "address": "12 Main Street",
        "city": "Saratoga Springs",
        "state": "NY",
        "zip_code": "12866",
        "description": "Tickets to a ballgame for the kids this summer.",
    }


def make_fun_grant_payload(**overrides) -> Dict[str, Any]:
    """Factory for a valid Fun Grant form body."""
    payload = {
        "application_type": "fun_grant",
        "applicant_name": "Jane Doe",
        "applicant_email": "jane@example.com",
        "applicant_phone": "518-555-0100",
        "address": "12 Main Street",
        "city": "Saratoga Springs",
        "state": "NY",
        "zip_code": "12866",
        "description": "Tickets to a Yankees game so the kids can have a fun day together.",
        "child_name": "Sam Doe",
        "child_age": 9,
        "relationship": "parent",
        "loss_details": "Sam's father passed away last spring.",
        "requested_amount": 250,
    }
    payload.update(overrides)
    return payload


def make_user(user_id: str = None, email: str = "staff@kellysangels.org") -> Dict[str, Any]:
    return {"id": user_id or generate_uuid(), "email": email, "access_token": "x" * 40}


# ============================================================================
# TEST FIXTURES
# ============================================================================

@pytest.fixture
def fake_db():
    """Empty in-memory Supabase."""
    return FakeSupabase()


@pytest.fixture
def app(fake_db):
    """The FastAPI app with the Supabase client swapped for ``fake_db``."""
    from angels.deps import get_supabase
    from angels.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_supabase] = lambda: fake_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def api(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def login_as(app, fake_db):
    """Sign a user in with a given staff role (or none).

    Returns the user dict. ``role=None`` signs in a user without a
    ``user_profiles`` row.
    """
    from angels.deps import get_current_user

    def _login(role: Optional[str] = "staff", user: Dict[str, Any] = None) -> Dict[str, Any]:
        user = user or make_user()
        if role is not None:
            fake_db.tables.setdefault("user_profiles", []).append(
                {"id": user["id"], "email": user["email"], "role": role, "full_name": "Test Staff"}
            )
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture
def volunteer_profile(app, fake_db):
    """Sign in a volunteer with a ``volunteer_profiles`` row."""
    from angels.deps import get_current_user

    user = make_user(email="volunteer@example.com")
    profile = {
        "id": generate_uuid(),
        "user_id": user["id"],
        "full_name": "Val Unteer",
        "email": user["email"],
        "hours_completed": 0,
    }
    fake_db.tables.setdefault("volunteer_profiles", []).append(profile)
    app.dependency_overrides[get_current_user] = lambda: user
    return profile
