"""
Pytest fixtures for Authentiks backend tests.

Provides an in-memory database, one account per role, a brand with its
company, and helpers for authenticated requests.
"""

import pytest

from authentiks import create_app
from authentiks.extensions import db
from authentiks.models import Brand, Company
from authentiks.permissions import (
    ROLE_SUPERADMIN,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_COMPANY,
    ROLE_AUTHORIZER,
    ROLE_CREATOR,
)
from authentiks.services import credit_service, session_service, user_service


PASSWORD = "Password123!"
TEST_MOBILE = "+919999999999"
TEST_OTP = "123456"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'GEOCODING_ENABLED': False,
        'PHONEPE_CLIENT_ID': None,
        'PHONEPE_CLIENT_SECRET': None,
        'OTP_TEST_MOBILE': TEST_MOBILE,
        'OTP_TEST_CODE': TEST_OTP,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(email, role, name=None, brand_id=None, company_id=None):
    user = user_service.create_user(
        email=email,
        password=PASSWORD,
        role=role,
        name=name or role.title(),
        brand_id=brand_id,
        company_id=company_id,
    )
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def superadmin(db_session):
    return make_user("root@authentiks.in", ROLE_SUPERADMIN)


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user("ops@authentiks.in", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager(db_session):
    return make_user("printing@authentiks.in", ROLE_MANAGER)


@pytest.fixture(scope='function')
def company(db_session):
    """Company "Acme Corp" with zero credits."""
    company = Company(company_name="Acme Corp", qr_credits=0)
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def brand(db_session, company):
    brand = Brand(brand_name="ACME", company_id=company.id)
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def other_brand(db_session):
    """A second tenant: "Beta Inc" with brand BETA."""
    other = Company(company_name="Beta Inc", qr_credits=0)
    db_session.add(other)
    db_session.commit()
    brand = Brand(brand_name="BETA", company_id=other.id)
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def company_user(db_session, company, brand):
    return make_user("owner@acme.in", ROLE_COMPANY, "Acme Owner", brand.id, company.id)


@pytest.fixture(scope='function')
def authorizer(db_session, company, brand):
    return make_user("approver@acme.in", ROLE_AUTHORIZER, "Acme Approver", brand.id, company.id)


@pytest.fixture(scope='function')
def creator(db_session, company, brand):
    return make_user("maker@acme.in", ROLE_CREATOR, "Acme Maker", brand.id, company.id)


@pytest.fixture(scope='function')
def other_creator(db_session, other_brand):
    return make_user("maker@beta.in", ROLE_CREATOR, "Beta Maker", other_brand.id, other_brand.company_id)


@pytest.fixture(scope='function')
def consumer(db_session):
    """OTP consumer with a complete profile."""
    from authentiks.models import User
    user = User(mobile="+919876543210", role="user", name="Asha")
    db_session.add(user)
    db_session.commit()
    return user


def grant(company, amount):
    """Seed credits through the ledger so balances stay reconcilable."""
    return credit_service.grant_credits(company.id, amount, None, "Test seed")


def token_for(user) -> str:
    _, token = session_service.create_session(user)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    return auth_headers(token_for(user))


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def superadmin_headers(superadmin):
    return headers_for(superadmin)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return headers_for(manager)


@pytest.fixture(scope='function')
def company_headers(company_user):
    return headers_for(company_user)


@pytest.fixture(scope='function')
def authorizer_headers(authorizer):
    return headers_for(authorizer)


@pytest.fixture(scope='function')
def creator_headers(creator):
    return headers_for(creator)


@pytest.fixture(scope='function')
def consumer_headers(consumer):
    return headers_for(consumer)
