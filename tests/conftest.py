"""
Shared fixtures: an in-memory stand-in for the Supabase client.

FakeSupabase implements just enough of supabase-py's surface (table queries,
auth, auth.admin, rpc) for the repositories, auth dependencies and admin
tooling to run without a network.
"""

from collections import defaultdict
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from lea.db.client import ANON_KEY_VARS, SERVICE_KEY_VARS, URL_VARS, reset_clients
from lea.payments.client import reset_payment_client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeQuery:
    """A chainable query over one in-memory table."""

    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name
        self.action = "select"
        self.payload = None
        self.filters = []
        self.ordering = []
        self.row_limit = None

    # Actions
    def select(self, columns="*"):
        self.action = "select"
        return self

    def insert(self, data):
        self.action, self.payload = "insert", data
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict="id"):
        self.action, self.payload = "upsert", data
        self.conflict_key = on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matching(self):
        return [row for row in self.db.tables[self.name] if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.queries.append((self.name, self.action))
        error = self.db.errors.pop(self.name, None)
        if error:
            raise error

        if self.action == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            return SimpleNamespace(data=[self.db.insert(self.name, row) for row in rows])

        if self.action == "upsert":
            row = dict(self.payload)
            key = self.conflict_key
            for existing in self.db.tables[self.name]:
                if existing.get(key) == row.get(key):
                    existing.update(row)
                    return SimpleNamespace(data=[dict(existing)])
            return SimpleNamespace(data=[self.db.insert(self.name, row)])

        rows = self._matching()

        if self.action == "update":
            for row in rows:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in rows])

        if self.action == "delete":
            self.db.tables[self.name] = [r for r in self.db.tables[self.name] if r not in rows]
            return SimpleNamespace(data=[dict(r) for r in rows])

        for column, desc in reversed(self.ordering):
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        return SimpleNamespace(data=[dict(r) for r in rows])


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        error = self.db.rpc_errors.get(self.params.get("sql"))
        if error:
            raise error
        return SimpleNamespace(data=None)


class FakeAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth
        self.revoked = []
        self.delete_errors = {}

    def create_user(self, attributes):
        return SimpleNamespace(
            user=self.auth.add_user(
                attributes["email"],
                attributes["password"],
                attributes.get("user_metadata") or {},
            ),
        )

    def list_users(self, page=None, per_page=None):
        users = list(self.auth.users.values())
        if page is None or per_page is None:
            return users
        start = (page - 1) * per_page
        return users[start:start + per_page]

    def delete_user(self, user_id):
        error = self.delete_errors.get(user_id)
        if error:
            raise error
        for email, user in list(self.auth.users.items()):
            if user.id == user_id:
                del self.auth.users[email]

    def sign_out(self, jwt, scope="global"):
        self.revoked.append(jwt)


class FakeAuth:
    """Users, passwords and issued tokens."""

    def __init__(self):
        self.users = {}
        self.passwords = {}
        self.tokens = {}
        self.reset_requests = []
        self.admin = FakeAdmin(self)

    def add_user(self, email, password, metadata=None):
        if email in self.users:
            raise Exception("A user with this email address has already been registered")
        user = SimpleNamespace(
            id=str(uuid4()),
            email=email,
            user_metadata=dict(metadata or {}),
            created_at=datetime.now(timezone.utc),
        )
        self.users[email] = user
        self.passwords[email] = password
        return user

    def issue_token(self, user) -> str:
        token = f"token-{user.id}"
        self.tokens[token] = user
        return token

    def _session(self, user):
        return SimpleNamespace(
            access_token=self.issue_token(user),
            refresh_token=f"refresh-{user.id}",
            expires_at=1700000000,
        )

    def sign_up(self, credentials):
        metadata = (credentials.get("options") or {}).get("data") or {}
        if credentials["email"] in self.users:
            raise Exception("User already registered")
        user = self.add_user(credentials["email"], credentials["password"], metadata)
        return SimpleNamespace(user=user, session=self._session(user))

    def sign_in_with_password(self, credentials):
        email = credentials["email"]
        if self.passwords.get(email) != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = self.users[email]
        return SimpleNamespace(user=user, session=self._session(user))

    def get_user(self, token=None):
        user = self.tokens.get(token)
        if not user:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_out(self):
        pass

    def reset_password_for_email(self, email, options=None):
        self.reset_requests.append(email)


class FakeSupabase:
    """In-memory replacement for supabase.Client."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.queries = []
        self.errors = {}
        self.rpc_calls = []
        self.rpc_errors = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    def insert(self, name, row):
        stored = {"id": str(uuid4()), "created_at": _now(), "updated_at": _now(), **row}
        self.tables[name].append(stored)
        return dict(stored)

    def add_account(self, email, role, password="Password123!", **profile):
        """A confirmed user with a profile row and a live token."""
        user = self.auth.add_user(email, password, {"role": role})
        self.insert("user_profiles", {"id": user.id, "email": email, "role": role, **profile})
        token = self.auth.issue_token(user)
        return SimpleNamespace(
            id=user.id,
            email=email,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )


@pytest.fixture
def fake_supabase(monkeypatch):
    """Configure the environment and route every Supabase client to one fake."""
    for name in (*URL_VARS, *ANON_KEY_VARS, *SERVICE_KEY_VARS, "SUPABASE_JWT_SECRET", "STRIPE_SECRET_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")

    fake = FakeSupabase()
    monkeypatch.setattr("lea.db.client.create_client", lambda url, key: fake)
    reset_clients()
    reset_payment_client()
    yield fake
    reset_clients()
    reset_payment_client()


@pytest.fixture
def api(fake_supabase):
    from fastapi.testclient import TestClient
    from server import app

    app.dependency_overrides.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def practitioner(fake_supabase):
    return fake_supabase.add_account("sarah@clinic.example.com", "practitioner", first_name="Sarah", last_name="Williams")


@pytest.fixture
def other_practitioner(fake_supabase):
    return fake_supabase.add_account("olivia@clinic.example.com", "practitioner")


@pytest.fixture
def admin(fake_supabase):
    return fake_supabase.add_account("admin@clinic.example.com", "admin", first_name="Lea", last_name="Admin")


@pytest.fixture
def client_account(fake_supabase):
    return fake_supabase.add_account("emma@client.example.com", "client")
