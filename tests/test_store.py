import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from conftest import ORDER_A, ORDER_B, ORDER_C
from payment_transactions.errors import InvalidInput, PersistenceError
from payment_transactions.models import (
    Currency,
    PaymentMethod,
    PaymentTransaction,
    TransactionStatus,
    TransactionType,
)
from payment_transactions.services.store import TransactionStore
from payment_transactions.utils import to_utc

BASE_TIME = datetime(2024, 12, 7, 10, 30, tzinfo=timezone.utc)


def make_tx(order_id=ORDER_A, minutes=0, **kwargs):
    fields = dict(
        order_id=order_id,
        amount=100.0,
        currency=Currency.UAH,
        type=TransactionType.PAYMENT,
        status=TransactionStatus.COMPLETED,
        payment_method=PaymentMethod.CARD,
        transaction_time=BASE_TIME + timedelta(minutes=minutes),
    )
    fields.update(kwargs)
    return PaymentTransaction(**fields)


async def test_insert_assigns_id_and_timestamps(store):
    saved = await store.insert(make_tx(payment_metadata={"gateway": "stripe", "cardLast4": "4242"}))

    assert saved.id
    assert saved.created_at is not None
    assert saved.created_at <= saved.updated_at
    assert saved.payment_metadata == {"gateway": "stripe", "cardLast4": "4242"}


async def test_insert_stores_timestamps_as_utc(store):
    local = timezone(timedelta(hours=2))
    await store.insert(make_tx(transaction_time=datetime(2024, 12, 7, 12, 30, tzinfo=local)))
    await store.insert(make_tx(order_id=ORDER_B, transaction_time=datetime(2024, 12, 7, 10, 30)))
    await store.insert_many([make_tx(order_id=ORDER_C)])

    for order_id in (ORDER_A, ORDER_B, ORDER_C):
        [tx] = await store.find_by_order(order_id)
        assert to_utc(tx.transaction_time) == BASE_TIME
        assert to_utc(tx.created_at) <= to_utc(tx.updated_at)


async def test_find_by_order_newest_first(store):
    for minutes in (0, 20, 10):
        await store.insert(make_tx(minutes=minutes))
    await store.insert(make_tx(order_id=ORDER_B, minutes=30))

    found = await store.find_by_order(ORDER_A)

    assert [to_utc(tx.transaction_time) for tx in found] == [
        BASE_TIME + timedelta(minutes=20),
        BASE_TIME + timedelta(minutes=10),
        BASE_TIME,
    ]


async def test_find_by_order_paginates(store):
    await store.insert_many(make_tx(minutes=m) for m in range(5))

    first_page = await store.find_by_order(ORDER_A, limit=2, offset=0)
    last_page = await store.find_by_order(ORDER_A, limit=2, offset=4)
    past_end = await store.find_by_order(ORDER_A, limit=2, offset=10)

    assert [to_utc(tx.transaction_time) for tx in first_page] == [
        BASE_TIME + timedelta(minutes=4),
        BASE_TIME + timedelta(minutes=3),
    ]
    assert [to_utc(tx.transaction_time) for tx in last_page] == [BASE_TIME]
    assert past_end == []


async def test_find_by_order_unknown_order_is_empty(store):
    assert await store.find_by_order(ORDER_C) == []


@pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
async def test_find_by_order_rejects_bad_page(store, limit, offset):
    with pytest.raises(InvalidInput):
        await store.find_by_order(ORDER_A, limit=limit, offset=offset)


async def test_count_by_orders(store):
    await store.insert_many(make_tx(minutes=m) for m in range(5))
    await store.insert(make_tx(order_id=ORDER_C))

    counts = await store.count_by_orders([ORDER_A, ORDER_B, ORDER_A])

    assert counts == {ORDER_A: 5, ORDER_B: 0}


async def test_count_by_orders_empty_input(store):
    assert await store.count_by_orders([]) == {}


async def test_counts_and_deletes(store):
    await store.insert_many(make_tx(minutes=m) for m in range(3))
    await store.insert(make_tx(order_id=ORDER_B))

    assert await store.count_by_order(ORDER_A) == 3
    assert await store.count_all() == 4

    assert await store.delete_by_order(ORDER_A) == 3
    assert await store.delete_by_order(ORDER_A) == 0
    assert await store.count_all() == 1

    assert await store.delete_all() == 1
    assert await store.count_all() == 0


class BrokenSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def exec(self, statement):
        raise OperationalError("SELECT", {}, Exception("database is locked"))


class SlowSession(BrokenSession):
    async def exec(self, statement):
        await asyncio.sleep(1)


async def test_storage_failure_raises_persistence_error():
    store = TransactionStore(BrokenSession)

    with pytest.raises(PersistenceError) as exc_info:
        await store.find_by_order(ORDER_A)
    assert isinstance(exc_info.value.__cause__, OperationalError)


async def test_storage_timeout_raises_persistence_error():
    store = TransactionStore(SlowSession, timeout=0.01)

    with pytest.raises(PersistenceError, match="timed out"):
        await store.count_by_orders([ORDER_A])
