"""
Pytest fixtures for tradelink backend tests.

Provides an in-memory app with fake external collaborators, a fresh
database per test, tenant fixtures and an auth-header helper.
"""

import pytest

from tradelink import create_app
from tradelink.capabilities import Capabilities
from tradelink.errors import AuthenticationError, ExternalServiceError
from tradelink.extensions import db
from tradelink.models import Business, InventoryItem
from tradelink.services import session_service


TEST_OTP = "424242"


class FakeIdentityVerifier:
    def __init__(self):
        self.calls = []

    def verify(self, phone, otp):
        self.calls.append((phone, otp))
        if otp != TEST_OTP:
            raise AuthenticationError("Invalid verification code")
        return phone


class FakeObjectStorage:
    def __init__(self):
        self.objects = {}
        self.fail = False

    def put(self, key, data, content_type):
        if self.fail:
            raise ExternalServiceError("Storage unavailable")
        self.objects[key] = (data, content_type)
        return f"https://files.test/{key}"


class FakeInvoiceRenderer:
    def __init__(self):
        self.rendered = []

    def render(self, invoice_data):
        self.rendered.append(invoice_data)
        return b"%PDF-fake " + invoice_data["invoice_number"].encode()


@pytest.fixture(scope='session')
def fake_capabilities():
    return Capabilities(
        identity_verifier=FakeIdentityVerifier(),
        object_storage=FakeObjectStorage(),
        invoice_renderer=FakeInvoiceRenderer(),
    )


@pytest.fixture(scope='session')
def app(fake_capabilities):
    """Create application for testing."""
    app = create_app(
        config_overrides={
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'EXPOSE_ERROR_DETAILS': True,
            'ENFORCE_STOCK': True,
        },
        capabilities=fake_capabilities,
    )

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app, fake_capabilities):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    db.session.rollback()
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    fake_capabilities.identity_verifier.calls.clear()
    fake_capabilities.object_storage.objects.clear()
    fake_capabilities.object_storage.fail = False
    fake_capabilities.invoice_renderer.rendered.clear()
    app.config['ENFORCE_STOCK'] = True

    yield db.session

    # Cleanup after test
    db.session.rollback()


def make_business(db_session, name: str, phone: str) -> Business:
    business = Business(
        business_name=name,
        owner_name=f"{name} Owner",
        contact=phone,
        gstin=f"GST-{phone[-4:]}",
        location="Pune",
    )
    db_session.add(business)
    db_session.commit()
    return business


def make_product(db_session, business: Business, name: str, qty: int = 50,
                 gen_price_cents=None, price_cents=None) -> InventoryItem:
    product = InventoryItem(
        business_id=business.id,
        name=name,
        qty=qty,
        gen_price_cents=gen_price_cents,
        price_cents=price_cents,
        unit="pcs",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def seller(db_session):
    """Business A: owns the catalog."""
    return make_business(db_session, "Alpha Traders", "+919800000001")


@pytest.fixture(scope='function')
def buyer(db_session):
    """Business B: buys from A."""
    return make_business(db_session, "Beta Stores", "+919800000002")


@pytest.fixture(scope='function')
def outsider(db_session):
    """Business C: party to nothing."""
    return make_business(db_session, "Gamma Retail", "+919800000003")


@pytest.fixture(scope='function')
def product(db_session, seller):
    """Product P of A with gen_price 100."""
    return make_product(db_session, seller, "Product P", qty=50, gen_price_cents=100)


def auth_headers(business: Business) -> dict:
    """Issue a token pair for business and return Authorization headers."""
    tokens = session_service.create_token_pair(business.id)
    return {'Authorization': f'Bearer {tokens.access_token}'}
