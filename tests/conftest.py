from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

User = get_user_model()

_sku_counter = count(1)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    return User.objects.create_user(
        username="shopper", email="shopper@example.com", password="testpass123"
    )


@pytest.fixture()
def other_user():
    return User.objects.create_user(
        username="other", email="other@example.com", password="testpass123"
    )


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="backoffice",
        email="admin@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture()
def auth_client(user):
    """APIClient authenticated as a regular shopper."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def other_client(other_user):
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client


@pytest.fixture()
def admin_client(admin_user):
    """APIClient authenticated as a staff user."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture()
def make_product():
    """Factory for catalog products; defaults give a purchasable product."""

    def _make(**overrides) -> Product:
        fields = {
            "title": f"Product {next(_sku_counter)}",
            "price": Decimal("100.00"),
            "inventory": 5,
            "category": "Software",
        }
        fields.update(overrides)
        return Product.objects.create(**fields)

    return _make


@pytest.fixture()
def product(make_product):
    return make_product(title="Starter Kit", price=Decimal("100.00"), inventory=5)


@pytest.fixture()
def shipping_address():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
    }


@pytest.fixture()
def cart_service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def fake_gateway():
    """In-memory payment gateway; tests set ``charges`` and inspect ``refunds``."""
    from modules.payments.dtos import ChargeDTO, RefundResultDTO
    from modules.payments.gateway import IPaymentGateway

    class FakeGateway(IPaymentGateway):
        def __init__(self) -> None:
            self.charges: dict[str, ChargeDTO] = {}
            self.refunds: list[tuple] = []

        def add_charge(
            self, charge_id, amount, status="succeeded", user_id=None, currency="usd"
        ):
            metadata = {"user_id": str(user_id)} if user_id is not None else {}
            self.charges[charge_id] = ChargeDTO(
                id=charge_id,
                status=status,
                amount=Decimal(str(amount)),
                currency=currency,
                client_secret=f"{charge_id}_secret_x",
                metadata=metadata,
            )
            return self.charges[charge_id]

        def create_charge(self, amount, currency, metadata):
            charge_id = f"pi_fake_{len(self.charges) + 1}"
            self.charges[charge_id] = ChargeDTO(
                id=charge_id,
                status="requires_payment_method",
                amount=amount,
                currency=currency,
                client_secret=f"{charge_id}_secret_x",
                metadata=metadata,
            )
            return self.charges[charge_id]

        def retrieve_charge(self, charge_id):
            return self.charges[charge_id]

        def refund(self, charge_id, amount=None, reason=None):
            self.refunds.append((charge_id, amount, reason))
            charged = self.charges[charge_id].amount if charge_id in self.charges else Decimal("0")
            return RefundResultDTO(
                id=f"re_{len(self.refunds)}",
                amount=amount if amount is not None else charged,
                status="succeeded",
                reason=reason,
            )

        def construct_event(self, payload, signature):
            raise NotImplementedError

    return FakeGateway()


@pytest.fixture()
def order_service(fake_gateway):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        payment_gateway=fake_gateway,
    )
