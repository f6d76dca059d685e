import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, TypeVar
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession
from ..errors import InvalidInput, PersistenceError
from ..models import PaymentTransaction
from ..schemas import MAX_PAGE_SIZE
from ..utils import to_utc, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionStore:
    """
    Persistence for PaymentTransaction records.

    Every operation runs in its own session and is bounded by ``timeout``
    seconds. Storage failures and timeouts surface as PersistenceError.
    """

    def __init__(self, session_factory: async_sessionmaker, timeout: float = 5.0):
        self.session_factory = session_factory
        self.timeout = timeout

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        try:
            async with self.session_factory() as session:
                return await asyncio.wait_for(work(session), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Store %s timed out after %ss", operation, self.timeout)
            raise PersistenceError(f"Storage {operation} timed out") from e
        except SQLAlchemyError as e:
            logger.error("Store %s failed: %s", operation, e)
            raise PersistenceError(f"Storage {operation} failed: {e}") from e

    async def insert(self, tx: PaymentTransaction) -> PaymentTransaction:
        now = utcnow()
        tx.transaction_time = to_utc(tx.transaction_time)
        tx.created_at = now
        tx.updated_at = now

        async def work(session: AsyncSession) -> PaymentTransaction:
            session.add(tx)
            await session.commit()
            await session.refresh(tx)
            return tx

        return await self._run("insert", work)

    async def insert_many(self, records: Iterable[PaymentTransaction]) -> int:
        now = utcnow()
        records = list(records)
        for tx in records:
            tx.transaction_time = to_utc(tx.transaction_time)
            tx.created_at = now
            tx.updated_at = now

        async def work(session: AsyncSession) -> int:
            session.add_all(records)
            await session.commit()
            return len(records)

        return await self._run("insert", work)

    async def find_by_order(self, order_id: str, limit: int = 10, offset: int = 0) -> List[PaymentTransaction]:
        """Transactions of one order, newest transaction_time first."""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidInput(f"size must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise InvalidInput("from must not be negative")

        q = (
            select(PaymentTransaction)
            .where(PaymentTransaction.order_id == order_id)
            .order_by(col(PaymentTransaction.transaction_time).desc(), col(PaymentTransaction.created_at).desc())
            .offset(offset)
            .limit(limit)
        )

        async def work(session: AsyncSession) -> List[PaymentTransaction]:
            res = await session.exec(q)
            return list(res.all())

        return await self._run("read", work)

    async def count_by_orders(self, order_ids: Iterable[str]) -> Dict[str, int]:
        """
        Number of transactions per order id, computed with one grouped query.
        Every distinct id is present in the result, 0 when it has none.
        """
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            return {}

        q = (
            select(PaymentTransaction.order_id, func.count(col(PaymentTransaction.id)))
            .where(col(PaymentTransaction.order_id).in_(ids))
            .group_by(PaymentTransaction.order_id)
        )

        async def work(session: AsyncSession) -> Dict[str, int]:
            res = await session.exec(q)
            return dict(res.all())

        found = await self._run("aggregate", work)
        counts = {order_id: 0 for order_id in ids}
        counts.update(found)
        return counts

    async def count_by_order(self, order_id: str) -> int:
        q = select(func.count(col(PaymentTransaction.id))).where(PaymentTransaction.order_id == order_id)

        async def work(session: AsyncSession) -> int:
            res = await session.exec(q)
            return res.one()

        return await self._run("aggregate", work)

    async def count_all(self) -> int:
        q = select(func.count(col(PaymentTransaction.id)))

        async def work(session: AsyncSession) -> int:
            res = await session.exec(q)
            return res.one()

        return await self._run("aggregate", work)

    async def delete_by_order(self, order_id: str) -> int:
        return await self._delete(delete(PaymentTransaction).where(col(PaymentTransaction.order_id) == order_id))

    async def delete_all(self) -> int:
        return await self._delete(delete(PaymentTransaction))

    async def _delete(self, stmt) -> int:
        async def work(session: AsyncSession) -> int:
            res = await session.execute(stmt)
            await session.commit()
            return res.rowcount

        return await self._run("delete", work)
