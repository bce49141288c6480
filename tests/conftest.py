import os
import uuid
from contextvars import ContextVar
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import atacado.db.database as db_module
from atacado.api.main import app
from atacado.db import models
from atacado.services import evolution_api, plugnotas
from atacado.utils.feature_flags import refresh_feature_flag_cache
from atacado.utils.role_permissions import get_role_permissions

# SQLite in-memory by default; USE_TESTCONTAINERS=1 runs against a
# migrated Postgres container instead.
_USE_CONTAINER = os.getenv("USE_TESTCONTAINERS") == "1"

_FLAG_ENV = (
    "FEATURE_WHATSAPP_ENABLED",
    "FEATURE_FISCAL_ENABLED",
    "FEATURE_INVESTMENTS_ENABLED",
    "FEATURE_LOYALTY_ENABLED",
)


@pytest.fixture(scope="session")
def _test_postgres():
    if not _USE_CONTAINER:
        yield None
        return
    from testcontainers.postgres import PostgresContainer
    from alembic import command
    from alembic.config import Config

    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    with PostgresContainer(image) as pg:
        url = pg.get_connection_url()
        # postgresql+psycopg2:// -> postgresql://
        if "+" in url.split("://", 1)[0]:
            url = "postgresql://" + url.split("://", 1)[1]
        os.environ["TEST_DATABASE_URL"] = url
        cfg = Config("alembic.ini")
        cfg.set_main_option("sqlalchemy.url", url)
        command.upgrade(cfg, "head")
        yield url


@pytest.fixture(scope="session")
def _engine(_test_postgres):
    if _test_postgres is None:
        return db_module.engine
    engine = create_engine(_test_postgres, future=True)
    db_module.engine.dispose()
    db_module.engine = engine
    db_module.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine


_current_session: ContextVar[object] = ContextVar("_current_session", default=None)
# Fallback for threadpool contexts where ContextVar may not propagate
_GLOBAL_SESSION = None


@pytest.fixture(autouse=True)
def db_session(_engine):
    """One session per test, shared with the app through ``get_db``.

    SQLite rebuilds the schema for every test. Postgres wraps the test in an
    outer transaction and turns service commits into savepoints.
    """
    global _GLOBAL_SESSION
    if _test_is_sqlite(_engine):
        models.Base.metadata.create_all(bind=_engine)
        session = Session(bind=_engine, autoflush=False)
        connection = trans = None
    else:
        connection = _engine.connect()
        trans = connection.begin()
        session = Session(bind=connection, autoflush=False, join_transaction_mode="create_savepoint")
    token = _current_session.set(session)
    _GLOBAL_SESSION = session
    try:
        yield session
    finally:
        _current_session.reset(token)
        _GLOBAL_SESSION = None
        session.close()
        if connection is not None:
            trans.rollback()
            connection.close()
        else:
            models.Base.metadata.drop_all(bind=_engine)


def _test_is_sqlite(engine) -> bool:
    return engine.url.get_backend_name() == "sqlite"


def _override_get_db():
    session = _current_session.get()
    if session is None:
        session = _GLOBAL_SESSION
    if session is None:
        raise RuntimeError("db_session fixture is not active")
    yield session


app.dependency_overrides[db_module.get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Default flags, no dev identity and fresh integration clients per test."""
    for name in _FLAG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DEV_MODE", "false")
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    refresh_feature_flag_cache()
    evolution_api.reset_evolution_client()
    plugnotas.reset_plugnotas_client()
    # WhatsApp answers "disconnected" unless a test installs its own client
    monkeypatch.setattr(evolution_api, "_evolution_client", evolution_api.EvolutionClient(session=FakeHttp()))
    yield
    refresh_feature_flag_cache()
    evolution_api.reset_evolution_client()
    plugnotas.reset_plugnotas_client()


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client():
    return TestClient(app)


def _auth_headers(user, org=None):
    headers = {"X-Auth-Request-Email": user.email, "X-Auth-Request-User": user.email.split("@")[0]}
    if org is not None:
        headers["X-Organization-Id"] = str(org.id)
    return headers


# Factories

@pytest.fixture
def user_factory(db_session: Session):
    def _create(email: str = None, is_superadmin: bool = False, display_name: str = None):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        user = models.User(email=email, display_name=display_name or email.split('@')[0], is_superadmin=is_superadmin)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def organization_factory(db_session: Session):
    def _create(name: str = None, created_by=None):
        name = name or f"Atacado {uuid.uuid4().hex[:6]}"
        org = models.Organization(name=name, slug=name.lower().replace(' ', '-'), city='Gurupi', created_by=created_by)
        db_session.add(org)
        db_session.commit()
        db_session.refresh(org)
        return org
    return _create


@pytest.fixture
def membership_factory(db_session: Session):
    def _create(org, user, role: str = 'owner'):
        perms = get_role_permissions(role)
        m = models.OrganizationMembership(
            organization_id=org.id, user_id=user.id, role=role,
            can_read=perms["can_read"], can_write=perms["can_write"],
        )
        db_session.add(m)
        db_session.commit()
        return m
    return _create


@pytest.fixture
def customer_factory(db_session: Session):
    def _create(org, name: str = "Mercearia Central", credit_limit="1000.00", **fields):
        fields.setdefault("cpf_cnpj", "123.456.789-01")
        fields.setdefault("phone", "63999990000")
        credit_limit = Decimal(str(credit_limit))
        fields.setdefault("available_credit", credit_limit)
        customer = models.Customer(organization_id=org.id, name=name, credit_limit=credit_limit, **fields)
        db_session.add(customer)
        db_session.commit()
        db_session.refresh(customer)
        return customer
    return _create


@pytest.fixture
def product_factory(db_session: Session):
    def _create(org, name: str = "Pão de Queijo 1kg", price_wholesale="20.00", price_retail="25.00", **fields):
        fields.setdefault("current_stock", 100)
        product = models.Product(
            organization_id=org.id, name=name, price_wholesale=Decimal(str(price_wholesale)), price_retail=Decimal(str(price_retail)), **fields,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _create


@pytest.fixture
def bank_account_factory(db_session: Session):
    def _create(org, name: str = "Conta Principal", balance="0.00"):
        account = models.BankAccount(organization_id=org.id, name=name, bank_name="Banco do Brasil", balance=Decimal(str(balance)))
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account
    return _create


@pytest.fixture
def shop(user_factory, organization_factory, membership_factory):
    """An organization with an owner; returns ``(org, owner, headers)``."""
    owner = user_factory("owner@atacado.test")
    org = organization_factory("Atacado Gurupi", created_by=owner.id)
    membership_factory(org, owner, role='owner')
    return org, owner, _auth_headers(owner, org)


@pytest.fixture
def auth_headers():
    """Identity headers the oauth2 proxy would set, plus the active organization."""
    return _auth_headers


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class FakeHttp:
    """Stand-in for ``requests`` keyed by (METHOD, path suffix).

    Unmatched calls answer 404. Every call is recorded in ``calls``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({"method": method.upper(), "url": url, "json": json, "headers": headers})
        for (route_method, suffix), response in self.routes.items():
            if route_method == method.upper() and url.endswith(suffix):
                return response(json) if callable(response) else response
        return FakeResponse(404, {"message": "not found"})

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def delete(self, url, **kwargs):
        return self.request("DELETE", url, **kwargs)


@pytest.fixture
def fake_http():
    return FakeHttp


@pytest.fixture
def fake_response():
    return FakeResponse
