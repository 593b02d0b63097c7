import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_EMAIL_SCHEDULER"] = "false"

import pytest
from fastapi.testclient import TestClient

from alerts import EmailResult, get_email_sender
from auth import VerifiedUser, get_identity_verifier
from database import build_engine, get_gateway, get_registry
from gateway import EntryGateway
from registry import SchemaRegistry
from schema import metadata

TOKEN = "good-token"
OTHER_TOKEN = "other-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}
OTHER_AUTH = {"Authorization": f"Bearer {OTHER_TOKEN}"}


class FakeVerifier:
    def __init__(self):
        self.users = {
            TOKEN: VerifiedUser(user_id="uid-1", email="a@b.com"),
            OTHER_TOKEN: VerifiedUser(user_id="uid-2", email="c@d.com"),
        }

    async def verify(self, token):
        return self.users.get(token)


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.refuse = set()

    async def send(self, recipient, subject, body_html, sender):
        self.sent.append({"to": recipient, "subject": subject, "html": body_html, "from": sender})
        if recipient in self.refuse:
            return EmailResult(ok=False, error="refused")
        return EmailResult(ok=True, id=f"email-{len(self.sent)}")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def registry():
    return SchemaRegistry(metadata)


@pytest.fixture
def gateway(engine, registry):
    return EntryGateway(engine, registry)


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def user(gateway):
    return gateway.insert("user", {"id": "uid-1", "email": "a@b.com", "firstName": "A", "lastName": "B"})


@pytest.fixture
def client(gateway, registry, email_sender):
    from main import app

    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_identity_verifier] = FakeVerifier
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
