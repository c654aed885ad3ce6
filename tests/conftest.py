"""Pytest configuration and fixtures for Delvind payments tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (orders, finance, users, webhook audit log)
- Stripe secrets served from a temporary secrets directory
- Signed webhook payload helpers
"""

import hashlib
import hmac
import json
import os
import time
from pathlib import Path
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "sa-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-delvind")
os.environ.setdefault("SECRETS_DIR", "/nonexistent/secrets")

from delvind_api.dependencies import reset_services  # noqa: E402
from delvind_payments.config import Settings  # noqa: E402
from delvind_payments.services.dynamodb import DynamoDBService  # noqa: E402
from delvind_payments.services.secrets import (  # noqa: E402
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    SecretResolver,
)

TABLE_PREFIX = "test-delvind"
TEST_SECRET_KEY = "sk_test_delvind_123"
TEST_WEBHOOK_SECRET = "whsec_test_delvind_secret"
TEST_BASE_URL = "https://loja.example.com"


# === Service Singletons ===


@pytest.fixture(autouse=True)
def reset_service_singletons(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Stripe secrets are removed from the environment so that each test
    chooses its own source.
    """
    monkeypatch.delenv(STRIPE_SECRET_KEY, raising=False)
    monkeypatch.delenv(STRIPE_WEBHOOK_SECRET, raising=False)
    reset_services()
    yield
    reset_services()


# === Configuration Fixtures ===


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a test storefront."""
    return Settings(
        environment="test",
        base_url=TEST_BASE_URL,
        table_prefix=TABLE_PREFIX,
    )


@pytest.fixture
def secrets_dir(tmp_path: Path) -> Path:
    """Mounted-secrets directory holding both Stripe secrets."""
    (tmp_path / STRIPE_SECRET_KEY).write_text(f"{TEST_SECRET_KEY}\n", encoding="utf-8")
    (tmp_path / STRIPE_WEBHOOK_SECRET).write_text(TEST_WEBHOOK_SECRET, encoding="utf-8")
    return tmp_path


@pytest.fixture
def secrets(secrets_dir: Path) -> SecretResolver:
    """SecretResolver with both Stripe secrets available."""
    return SecretResolver(secrets_dir)


@pytest.fixture
def empty_secrets(tmp_path: Path) -> SecretResolver:
    """SecretResolver with no secrets in any source."""
    return SecretResolver(tmp_path / "missing")


# === DynamoDB Fixtures ===


TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "TableName": f"{TABLE_PREFIX}-orders",
        "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "order_id", "AttributeType": "S"}],
    },
    {
        "TableName": f"{TABLE_PREFIX}-finance",
        "KeySchema": [{"AttributeName": "finance_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "finance_id", "AttributeType": "S"}],
    },
    {
        "TableName": f"{TABLE_PREFIX}-users",
        "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": "email-index",
                "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
    },
    {
        "TableName": f"{TABLE_PREFIX}-stripe-webhook-events",
        "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "event_id", "AttributeType": "S"}],
    },
]


@pytest.fixture
def dynamodb_resource() -> Generator[Any, None, None]:
    """Mocked DynamoDB resource with all tables created."""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="sa-east-1")
        for definition in TABLE_DEFINITIONS:
            resource.create_table(BillingMode="PAY_PER_REQUEST", **definition)
        yield resource


@pytest.fixture
def db(dynamodb_resource: Any) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService(TABLE_PREFIX, resource=dynamodb_resource)


@pytest.fixture
def registered_user(db: DynamoDBService) -> dict[str, Any]:
    """A client in the users table."""
    user = {
        "user_id": "USR-0001",
        "email": "cliente@example.com",
        "name": "Ana Souza",
    }
    db.put_item(DynamoDBService.USERS_TABLE, user)
    return user


@pytest.fixture
def billed_finance_record(db: DynamoDBService) -> dict[str, Any]:
    """A finance record awaiting payment."""
    record = {
        "finance_id": "f1",
        "client_id": "USR-0001",
        "title": "Plano X",
        "total_amount": 250,
        "status": "Cobrança Enviada",
        "entry_type": "manual",
        "created_at": "2026-01-10T12:00:00+00:00",
    }
    db.put_item(DynamoDBService.FINANCE_TABLE, record)
    return record


# === Webhook Helpers ===


def sign_payload(payload: bytes, secret: str = TEST_WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Create a valid Stripe-Signature header for a payload.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = str(timestamp if timestamp is not None else int(time.time()))
    signed_payload = f"{ts}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


def make_event(event_type: str, obj: dict[str, Any], event_id: str = "evt_test_001") -> bytes:
    """Serialize a Stripe event envelope the way Stripe sends it."""
    event = {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }
    return json.dumps(event).encode("utf-8")


def store_session(
    session_id: str = "cs_test_store_001",
    email: str | None = "comprador@example.com",
    payment_status: str = "paid",
) -> dict[str, Any]:
    """A completed storefront checkout session object."""
    return {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": 21500,
        "currency": "brl",
        "payment_status": payment_status,
        "customer_details": {"name": "Bruno Lima", "email": email},
        "shipping_details": {
            "name": "Bruno Lima",
            "address": {
                "line1": "Rua das Flores, 100",
                "city": "São Paulo",
                "state": "SP",
                "postal_code": "01000-000",
                "country": "BR",
            },
        },
        "metadata": {
            "source": "store",
            "products": '[{"id":"p1","name":"Camiseta Delvind","isSubscription":false}]',
        },
    }


def finance_session(
    session_id: str = "cs_test_finance_001",
    finance_record_id: str = "f1",
) -> dict[str, Any]:
    """A completed invoice checkout session object."""
    return {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": 25050,
        "currency": "brl",
        "payment_status": "paid",
        "customer_details": {"name": "Ana Souza", "email": "cliente@example.com"},
        "metadata": {"source": "finance", "financeRecordId": finance_record_id},
    }


def subscription_invoice(
    invoice_id: str = "in_test_cycle_001",
    email: str | None = "cliente@example.com",
) -> dict[str, Any]:
    """A paid subscription-cycle invoice object."""
    return {
        "id": invoice_id,
        "object": "invoice",
        "billing_reason": "subscription_cycle",
        "customer_email": email,
        "customer_name": "Ana Souza",
        "amount_paid": 9990,
        "currency": "brl",
        "subscription": "sub_test_001",
        "lines": {"data": [{"description": "Plano Mensal Delvind"}]},
    }
