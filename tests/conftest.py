import httpx
import pytest
import pytest_asyncio
from payment_transactions.db import create_engine, create_sessionmaker, init_db
from payment_transactions.services.orders import OrderValidator, ValidationFailurePolicy
from payment_transactions.services.store import TransactionStore
from payment_transactions.services.transactions import TransactionService

ORDER_A = "a1b2c3d4-1111-4444-8888-123456789001"
ORDER_B = "a1b2c3d4-1111-4444-8888-123456789002"
ORDER_C = "a1b2c3d4-1111-4444-8888-123456789003"
MISSING_ORDER = "00000000-0000-4000-8000-000000000404"


class FakeOrdersService:
    """Stands in for the orders service behind an httpx.MockTransport."""

    def __init__(self, known=(ORDER_A, ORDER_B, ORDER_C)):
        self.known = set(known)
        self.calls = []
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        order_id = request.url.path.rsplit("/", 1)[-1]
        if order_id not in self.known:
            return httpx.Response(404, json={"message": "Order not found"})
        return httpx.Response(200, json={
            "id": order_id,
            "amount": 150.5,
            "status": "NEW",
            "customer": {"id": "67da6e0e-6e6b-4774-851d-35093e56c26f", "firstName": "John", "lastName": "Doe"},
        })


@pytest_asyncio.fixture
async def engine():
    eng = create_engine("sqlite+aiosqlite://")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def store(engine):
    return TransactionStore(create_sessionmaker(engine))


@pytest.fixture
def orders():
    return FakeOrdersService()


@pytest_asyncio.fixture
async def orders_client(orders):
    async with httpx.AsyncClient(base_url="http://orders.test", transport=httpx.MockTransport(orders)) as client:
        yield client


@pytest.fixture
def validator(orders_client):
    return OrderValidator(orders_client, on_validation_failure=ValidationFailurePolicy.FAIL)


@pytest.fixture
def service(store, validator):
    return TransactionService(store, validator)


def transaction_data(order_id=ORDER_A, **overrides):
    data = {
        "orderId": order_id,
        "amount": 150.5,
        "type": "PAYMENT",
        "status": "COMPLETED",
        "paymentMethod": "CARD",
    }
    data.update(overrides)
    return data
