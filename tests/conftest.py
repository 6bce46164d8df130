import pytest

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.repositories.identity_repo import InMemoryIdentityStore
from storefront.domain.services.cart_store import CartStore
from tests.fake_shop import BASE_URL, FakeShop


@pytest.fixture
def shop():
    return FakeShop()


@pytest.fixture
def identity():
    return InMemoryIdentityStore(guest_id="guest-1")


@pytest.fixture
def api(shop, identity):
    return ShopApiClient(BASE_URL, identity, transport=shop.transport)


@pytest.fixture
def store(api):
    return CartStore(api)
