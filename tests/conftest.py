import re
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

import gymstore.main as main_module
from gymstore.api.deps import get_gateway_resolver
from gymstore.core.config import settings
from gymstore.db.base import Base
from gymstore.db.models import Booking, EmailOtp, Order, Product, User  # noqa: F401
from gymstore.db.session import get_db
from gymstore.main import app
from gymstore.services.media_service import MediaUploadError, get_media_uploader
from gymstore.services.notification_service import NotificationResult, get_email_sender
from gymstore.services.payments import CheckoutSession, PaymentGatewayError

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

PASSWORD = "StrongPass123"
OTP_IN_EMAIL = re.compile(r"<strong>(\d{6})</strong>")


class FakeGateway:
    def __init__(self) -> None:
        self.unavailable = False
        self.fail_checkout = False
        self.fail_status = False
        self.payment_status = "paid"
        self.sessions: list[dict] = []

    def create_checkout_session(self, order_id, amount, currency, line_items, success_url, failure_url):
        if self.fail_checkout:
            raise PaymentGatewayError("checkout down")
        self.sessions.append(
            {
                "order_id": order_id,
                "amount": Decimal(amount),
                "currency": currency,
                "line_items": line_items,
                "success_url": success_url,
                "failure_url": failure_url,
            }
        )
        return CheckoutSession(reference=f"sess_{order_id}", redirect_url=f"https://pay.example.com/{order_id}")

    def fetch_order_status(self, reference):
        if self.fail_status:
            raise PaymentGatewayError("timeout")
        return self.payment_status

    def resolve(self, method):
        if self.unavailable:
            raise PaymentGatewayError("not configured")
        return self


class FakeEmailSender:
    def __init__(self) -> None:
        self.fail = False
        self.sent: list[dict] = []

    def send(self, to, subject, html_body):
        if self.fail:
            return NotificationResult(sent=False, error="smtp unavailable")
        self.sent.append({"to": to, "subject": subject, "html_body": html_body})
        return NotificationResult(sent=True)


class FakeMediaUploader:
    def __init__(self) -> None:
        self.fail = False
        self.uploads: list[tuple[str, str]] = []

    def upload(self, content, filename, resource_type="image"):
        if self.fail:
            raise MediaUploadError("cdn down")
        self.uploads.append((filename, resource_type))
        return f"https://cdn.example.com/{resource_type}/{filename}"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture()
def media_uploader() -> FakeMediaUploader:
    return FakeMediaUploader()


@pytest.fixture()
def client(monkeypatch, gateway, email_sender, media_uploader) -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(main_module, "SessionLocal", TestingSessionLocal)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway_resolver] = lambda: gateway.resolve
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_media_uploader] = lambda: media_uploader
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def request_otp(client: TestClient, email_sender: FakeEmailSender, email: str) -> str:
    response = client.post("/auth/otp", json={"email": email})
    assert response.status_code == 200, response.text
    mail = email_sender.sent.pop()
    assert mail["to"] == email.lower()
    return OTP_IN_EMAIL.search(mail["html_body"]).group(1)


def register_customer(
    client: TestClient,
    email_sender: FakeEmailSender,
    email: str,
    name: str = "Asha",
    password: str = PASSWORD,
):
    otp = request_otp(client, email_sender, email)
    return client.post("/auth/register", json={"name": name, "email": email, "password": password, "otp": otp})


def auth_headers(
    client: TestClient, email: str, password: str = PASSWORD, otp: str | None = None
) -> dict[str, str]:
    response = client.post("/auth/login", json={"email": email, "password": password, "otp": otp})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def admin_headers(client) -> dict[str, str]:
    return auth_headers(client, settings.default_admin_email, settings.default_admin_password)


def customer_auth_headers(
    client: TestClient, email_sender: FakeEmailSender, email: str, password: str = PASSWORD
) -> dict[str, str]:
    return auth_headers(client, email, password, otp=request_otp(client, email_sender, email))


@pytest.fixture()
def customer_headers(client, email_sender) -> dict[str, str]:
    response = register_customer(client, email_sender, "asha@example.com")
    assert response.status_code == 201, response.text
    return customer_auth_headers(client, email_sender, "asha@example.com")


def create_branch_headers(client: TestClient, admin_headers: dict[str, str], gym: str) -> dict[str, str]:
    email = f"{gym.lower().replace(' ', '-')}@example.com"
    response = client.post(
        "/users/branches",
        headers=admin_headers,
        json={"name": f"{gym} desk", "email": email, "password": PASSWORD, "gym": gym},
    )
    assert response.status_code == 201, response.text
    return auth_headers(client, email)


def create_product(client: TestClient, admin_headers: dict[str, str], **overrides) -> dict:
    payload = {
        "name": "Training Tee",
        "description": "Breathable cotton tee",
        "price": "245.00",
        "discount": 0,
        "category": "Men",
        "sub_category": "Topwear",
        "sizes": ["M", "L"],
        "bestseller": False,
    }
    payload.update(overrides)
    response = client.post("/products", headers=admin_headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def shipping_address(email: str = "asha@example.com") -> dict[str, str]:
    return {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": email,
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "zipcode": "560001",
        "country": "India",
        "phone": "+919800000000",
    }
