# tests/conftest.py

import uuid
from dataclasses import dataclass
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from main import create_app
from security import create_access_token
from tests.fakes import FakeStore, install


@dataclass
class AuthedUser:
    email: str
    role: str
    token: str
    user_id: uuid.UUID

    @property
    def principal(self):
        from deps.auth import CurrentUser

        return CurrentUser(user_id=self.user_id, email=self.email, role=self.role)


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------
# Store + Client
# ---------------------------

@pytest.fixture()
def store(monkeypatch) -> FakeStore:
    return install(monkeypatch)


@pytest.fixture()
def client(store) -> TestClient:
    # Needed so tests can assert 500s instead of pytest re-raising server exceptions.
    # Not used as a context manager: lifespan would open the real DB pool.
    return TestClient(create_app(), raise_server_exceptions=False)


# ---------------------------
# Users
# ---------------------------

def _make_user(store: FakeStore, email: str, role: str) -> AuthedUser:
    row = store.add_user(email, role)
    return AuthedUser(
        email=email,
        role=role,
        token=create_access_token(sub=str(row["id"]), role=role),
        user_id=row["id"],
    )


@pytest.fixture()
def ops_user(store) -> AuthedUser:
    return _make_user(store, "ops@demo.com", "OPS")


@pytest.fixture()
def finance_user(store) -> AuthedUser:
    return _make_user(store, "finance@demo.com", "FINANCE")


@pytest.fixture()
def vendor(store) -> dict:
    return store.add_vendor("Vendor Alpha")


@pytest.fixture()
def ops(ops_user):
    return ops_user.principal


@pytest.fixture()
def finance(finance_user):
    return finance_user.principal
