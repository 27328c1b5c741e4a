"""
Storefront Test Fixtures
========================

Shared fixtures for all test modules.
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from storefront.auth import StoreUser, issue_token
from storefront.catalog import PlanCategory, PlanCreate, SQLitePlanStore
from storefront.config import (
    AuthConfig,
    DatabaseConfig,
    LocalStorageConfig,
    StorefrontConfig,
)
from storefront.media import MediaCreate, SQLiteMediaStore
from storefront.ordering import AuthStatus, PlanDetail, StorefrontClient
from storefront.pricing import PromoValidation
from storefront.routes import limiter

JWT_SECRET = "test-secret"


# ============================================
# CONFIG
# ============================================

@pytest.fixture
def test_config(tmp_path):
    """Test configuration: in-memory catalog, uploads under tmp_path."""
    return StorefrontConfig(
        database=DatabaseConfig(url="sqlite:///:memory:"),
        local_storage=LocalStorageConfig(
            upload_dir=str(tmp_path / "uploads"),
            public_url_prefix="/uploads",
        ),
        auth=AuthConfig(jwt_secret=JWT_SECRET),
        promo_codes="NEXTGEN20:20,SAVE10:10,OLD50:50:2020-01-31,VPSONLY:15::vps-starter",
        log_format="text",
    )


# ============================================
# PLAN STORE
# ============================================

def make_plan(**overrides) -> PlanCreate:
    data = {
        "category": PlanCategory.RDP,
        "name": "RDP Basic",
        "cpu": "2 vCPU",
        "ram": "4 GB",
        "storage": "60 GB NVMe",
        "bandwidth": "Unmetered",
        "price": 3500,
        "features": ["Trading", "Browsing"],
    }
    data.update(overrides)
    return PlanCreate(**data)


@pytest.fixture
def plan_factory():
    return make_plan


@pytest_asyncio.fixture
async def plan_store():
    """Fresh in-memory SQLite plan store."""
    store = SQLitePlanStore(":memory:")
    await store.init()
    yield store
    await store.close()


# ============================================
# MEDIA STORE
# ============================================

def make_media(**overrides) -> MediaCreate:
    data = {
        "user_id": "user-1",
        "file_name": "proof.png",
        "original_name": "Bank Receipt.png",
        "file_type": "image/png",
        "file_size": 2048,
        "path": "/uploads/order-screenshots/a/proof.png",
        "object_key": "order-screenshots/a/proof.png",
        "storage_type": "local",
    }
    data.update(overrides)
    return MediaCreate(**data)


@pytest.fixture
def media_factory():
    return make_media


@pytest_asyncio.fixture
async def media_store():
    """Fresh in-memory SQLite media store."""
    store = SQLiteMediaStore(":memory:")
    await store.init()
    yield store
    await store.close()


# ============================================
# API
# ============================================

@pytest.fixture
def app(test_config):
    from main import create_app
    limiter.reset()
    return create_app(test_config)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def session_cookie(is_admin: bool = False, user_id: str = "user-1") -> dict:
    user = StoreUser(
        id=user_id,
        email=f"{user_id}@example.com",
        full_name="Test User",
        is_admin=is_admin,
    )
    return {"auth_token": issue_token(user, JWT_SECRET)}


@pytest.fixture
def admin_cookies():
    return session_cookie(is_admin=True, user_id="admin-1")


@pytest.fixture
def user_cookies():
    return session_cookie(is_admin=False)


# ============================================
# ORDER FLOW
# ============================================

@pytest.fixture
def plan_detail():
    return PlanDetail(
        id="rdp-standard",
        name="RDP Standard",
        price=5000,
        cpu="4 vCPU",
        ram="8 GB",
        storage="120 GB NVMe",
        bandwidth="Unmetered",
        os="Windows Server 2022",
        use_cases=["Trading"],
    )


@pytest.fixture
def mock_client(plan_detail):
    """AsyncMock storefront client with happy-path answers."""
    client = AsyncMock(spec=StorefrontClient)
    client.get_plan.return_value = plan_detail
    client.validate_promo.return_value = PromoValidation(
        valid=True, message="Promo code applied! 10% discount.", discount_percent=10
    )
    client.upload_file.return_value = {
        "success": True,
        "url": "https://files.example.com/order-screenshots/a/b.png",
        "fileName": "b.png",
        "storageType": "cloudinary",
    }
    client.create_order.return_value = {"order": {"orderId": "ORD-1001"}}
    return client


@pytest.fixture
def signed_in():
    return AuthStatus(is_authenticated=True, user_id="user-1", email="user-1@example.com")
