import os

# Settings are read at import time, so they have to be in place first.
os.environ["ENVIRONMENT"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AUTH_USERS"] = "alice:alice-pw,bob:bob-pw"
os.environ.pop("PUBLIC_BASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from shortlinks import auth, database
from shortlinks.main import app


@pytest.fixture(autouse=True)
def reset_tables():
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_header():
    def make(user: str) -> dict[str, str]:
        token = auth.create_access_token({"sub": user})
        return {"Authorization": f"Bearer {token}"}
    return make
