import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from uuid import UUID
from pydantic import ValidationError
from ..errors import InvalidInput
from ..models import DEFAULT_CURRENCY, PaymentTransaction
from ..schemas import DEFAULT_PAGE_SIZE, CreateTransactionIn, OrderSummary, TransactionOut
from ..utils import parse_order_id, to_utc, utcnow
from .orders import OrderValidator
from .store import TransactionStore

logger = logging.getLogger(__name__)


class TransactionService:
    def __init__(self, store: TransactionStore, validator: OrderValidator):
        self.store = store
        self.validator = validator

    async def create(self, payload: Union[CreateTransactionIn, Mapping[str, Any]]) -> TransactionOut:
        """
        Record a new transaction after confirming its order exists.

        transactionTime defaults to now and currency to UAH. OrderNotFound and
        ValidationUnavailable from the validator abort the create.
        """
        if not isinstance(payload, CreateTransactionIn):
            try:
                payload = CreateTransactionIn.model_validate(payload)
            except ValidationError as e:
                raise InvalidInput("Invalid transaction data", detail=e.errors(include_url=False)) from e

        order_id = str(payload.order_id)
        logger.info("Creating transaction for order: %s", order_id)

        transaction_time = payload.transaction_time or utcnow()
        tx = PaymentTransaction(
            order_id=order_id,
            amount=payload.amount,
            currency=payload.currency or DEFAULT_CURRENCY,
            type=payload.type,
            status=payload.status,
            payment_method=payload.payment_method,
            transaction_reference=payload.transaction_reference,
            description=payload.description,
            transaction_time=to_utc(transaction_time),
            processed_by=payload.processed_by,
            payment_metadata=payload.metadata,
        )

        await self.validator.validate_order_exists(order_id)

        saved = await self.store.insert(tx)
        logger.info("Transaction created: %s", saved.id)
        return TransactionOut.from_record(saved)

    async def list_by_order(self, order_id: Union[str, UUID], size: int = DEFAULT_PAGE_SIZE,
                            offset: int = 0) -> List[TransactionOut]:
        order_id = parse_order_id(order_id)
        logger.debug("Fetching transactions for order: %s, size: %s, from: %s", order_id, size, offset)
        transactions = await self.store.find_by_order(order_id, limit=size, offset=offset)
        logger.debug("Found %s transactions for order %s", len(transactions), order_id)
        return [TransactionOut.from_record(tx) for tx in transactions]

    async def counts_by_orders(self, order_ids: Iterable[Union[str, UUID]]) -> Dict[str, int]:
        """
        Transaction totals per order without loading the transactions.
        Keys are the ids as given, duplicates collapsed.
        """
        canonical = {str(order_id): parse_order_id(order_id) for order_id in order_ids}
        logger.debug("Getting transaction counts for %s orders", len(canonical))
        counts = await self.store.count_by_orders(canonical.values())
        return {order_id: counts[stored_id] for order_id, stored_id in canonical.items()}

    async def total_count_by_order(self, order_id: Union[str, UUID]) -> int:
        return await self.store.count_by_order(parse_order_id(order_id))

    async def delete_by_order(self, order_id: Union[str, UUID]) -> int:
        order_id = parse_order_id(order_id)
        deleted = await self.store.delete_by_order(order_id)
        logger.info("Deleted %s transactions for order %s", deleted, order_id)
        return deleted

    async def order_details(self, order_id: Union[str, UUID]) -> Optional[OrderSummary]:
        return await self.validator.get_order_details(parse_order_id(order_id))
