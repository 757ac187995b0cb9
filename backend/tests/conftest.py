"""
RR Nagar Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures: an in-memory SQLite database, a fake
       translator, seeded marketplace rows and an HTTPX client wired to the
       app through dependency overrides.

Fixture Hierarchy (all function-scoped):
    engine ─┬─ session_factory ── db_session ── seeded
            └─ test_client (overrides get_db_session, get_session_factory,
                            get_translation_service, optionally get_identity)
    translator: FakeTranslator (never touches the network)
    temp_storage, sample_image_bytes: upload helpers
"""

import os
import tempfile

# Settings are read at import time; configure the environment first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = ""
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="rrnagar_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["DB_AUTO_CREATE"] = "false"

from typing import List  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from marketplace.database import get_db_session, get_session_factory, init_models  # noqa: E402
from marketplace.exceptions import TranslationError  # noqa: E402
from marketplace.identity import Identity, get_identity  # noqa: E402
from marketplace.models import Admin, Category, Customer, Product, ProductSupplier, Supplier  # noqa: E402
from marketplace.services.auth_service import hash_password  # noqa: E402
from marketplace.services.gemini_translator import get_translation_service  # noqa: E402
from marketplace.services.translation_base import TranslationService  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fake Translator
# ══════════════════════════════════════════════════════════════════════════

class FakeTranslator(TranslationService):
    """
    Deterministic stand-in for GeminiTranslationService.

    translate("Mango") → "kn:Mango". With fail=True every call raises
    TranslationError. `batch_result` forces a specific batch reply.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batch_result = None
        self.calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    async def translate(self, text: str, target_language: str) -> str:
        self.calls.append(text)
        if self.fail:
            raise TranslationError(message="translator down")
        return f"{target_language}:{text}"

    async def translate_batch(self, texts: List[str], target_language: str) -> List[str]:
        self.batch_calls.append(list(texts))
        if self.fail:
            raise TranslationError(message="translator down")
        if self.batch_result is not None:
            return self.batch_result
        return [f"{target_language}:{t}" for t in texts]

    async def health_check(self) -> bool:
        return not self.fail


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test; StaticPool keeps one connection alive."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """AsyncSession stand-in for service tests that force persistence errors."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def seeded(db_session):
    """
    A small marketplace:
        groceries, dairy (categories)
        alice, bob (suppliers)
        template "Alphonso Mango" (ownerless, is_template)
        "Alice Rice" owned by alice; "Bob Dal", "Bob Milk" (dairy) owned by bob
        bob holds custody of "Alice Rice"
    """
    groceries = Category(name="Groceries", icon="🛒")
    dairy = Category(name="Dairy")
    alice = Supplier(name="Alice Stores", phone="9000000001")
    bob = Supplier(name="Bob Traders", phone="9000000002")
    db_session.add_all([groceries, dairy, alice, bob])
    await db_session.flush()

    template = Product(
        title="Alphonso Mango",
        description="Ratnagiri mangoes",
        variety="Alphonso",
        sub_variety="Premium",
        unit="dozen",
        image="uploads/products/mango.jpg",
        category_id=groceries.id,
        price=0,
        is_template=True,
    )
    alice_rice = Product(
        title="Alice Rice",
        description="Sona masoori rice",
        variety="Sona Masoori",
        unit="kg",
        category_id=groceries.id,
        price=60,
        supplier_id=alice.id,
    )
    bob_dal = Product(
        title="Bob Dal",
        description="Toor dal",
        variety="Toor",
        category_id=groceries.id,
        price=80,
        supplier_id=bob.id,
    )
    bob_milk = Product(
        title="Bob Milk",
        description="Fresh milk",
        category_id=dairy.id,
        price=30,
        supplier_id=bob.id,
    )
    db_session.add_all([template, alice_rice, bob_dal, bob_milk])
    await db_session.flush()

    db_session.add(ProductSupplier(product_id=alice_rice.id, supplier_id=bob.id))
    await db_session.commit()

    return {
        "groceries": groceries.id,
        "dairy": dairy.id,
        "alice": alice.id,
        "bob": bob.id,
        "template": template.id,
        "alice_rice": alice_rice.id,
        "bob_dal": bob_dal.id,
        "bob_milk": bob_milk.id,
        "products": [template.id, alice_rice.id, bob_dal.id, bob_milk.id],
    }


@pytest_asyncio.fixture
async def accounts(db_session):
    """One password-protected account of each kind; every password is 'pass1234'."""
    password_hash = hash_password("pass1234")
    customer = Customer(name="Chitra", email="chitra@example.com", password_hash=password_hash)
    supplier = Supplier(
        name="Suresh Stores", email="suresh@example.com", password_hash=password_hash
    )
    admin = Admin(name="Ops", email="ops@example.com", password_hash=password_hash)
    db_session.add_all([customer, supplier, admin])
    await db_session.commit()
    return {"customer": customer.id, "supplier": supplier.id, "admin": admin.id}


# ══════════════════════════════════════════════════════════════════════════
# Upload Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG-looking payload: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def failing_translator():
    return FakeTranslator(fail=True)


@pytest.fixture
def app(session_factory, translator):
    """The application with database and translator swapped for test doubles."""
    from marketplace.main import app as application

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.dependency_overrides[get_translation_service] = lambda: translator
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def act_as(app):
    """
    Returns a function that pins the request identity:
        act_as(Identity(supplier_id=1))
    """
    def _act_as(identity: Identity) -> None:
        app.dependency_overrides[get_identity] = lambda: identity
    return _act_as


@pytest_asyncio.fixture
async def test_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
