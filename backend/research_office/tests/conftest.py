import json
import os
import uuid

os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from research_office import notify, pubsub
from research_office.database import Base, engine, get_db
from research_office.main import app

# every test module shares one sqlite file rebuilt at collection time
Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def clear_outboxes(monkeypatch):
    notify.EMAIL_OUTBOX.clear()
    # one fake redis client per TestClient event loop
    monkeypatch.setattr(pubsub, "_redis", None)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def make_scientist(client, **overrides):
    """
    purpose: create a scientist with unique email and staff id for API tests
    outputs: scientist JSON payload
    """

    token = uuid.uuid4().hex[:8]
    payload = {
        "name": f"Dr. Test {token}",
        "first_name": "Test",
        "last_name": token,
        "email": f"scientist-{token}@example.com",
        "staff_id": f"S-{token}",
        "department": "Genomics",
        "job_title": "Scientist",
    }
    payload.update(overrides)
    resp = client.post("/api/scientists", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_research_activity(client, **overrides):
    payload = {"sdr_number": unique("SDR"), "title": "Microbiome cohort", "status": "active"}
    payload.update(overrides)
    resp = client.post("/api/research-activities", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_ibc_application(client, **overrides):
    pi = overrides.pop("pi", None) or make_scientist(client)
    payload = {
        "title": "Lentiviral vector production",
        "principal_investigator_id": pi["id"],
        "biosafety_level": "BSL-2",
        "is_draft": False,
    }
    payload.update(overrides)
    resp = client.post("/api/ibc-applications", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_irb_application(client, **overrides):
    pi = overrides.pop("pi", None) or make_scientist(client)
    activity = overrides.pop("activity", None) or make_research_activity(client)
    payload = {
        "title": "Pediatric asthma registry",
        "research_activity_id": activity["id"],
        "principal_investigator_id": pi["id"],
        "protocol_type": "Observational",
    }
    payload.update(overrides)
    resp = client.post("/api/irb-applications", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_publication(client, **overrides):
    payload = {"title": f"Manuscript {uuid.uuid4().hex[:6]}"}
    payload.update(overrides)
    resp = client.post("/api/publications", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def receive_event(websocket) -> dict:
    return json.loads(websocket.receive_text())
