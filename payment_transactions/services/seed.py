import logging
import random
import string
import time
from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence
from ..models import Currency, PaymentMethod, PaymentTransaction, TransactionStatus, TransactionType
from ..utils import utcnow
from .store import TransactionStore

logger = logging.getLogger(__name__)

DEMO_ORDER_IDS = [
    "e7c4ff4c-5fcd-4d03-bed1-9cb8a12ff8dc",
    "a3eccec7-7c88-4689-a803-6fa65d6296de",
    "2056dc37-c96e-4a6c-ac71-9c6d303df4af",
    "b968c1b8-ec5b-4c6e-b499-973c7462761a",
    "fccb2931-6143-4347-834e-3b9d33b78e91",
    "c60453b2-abbd-4c83-9142-879729a04e3d",
    "3952a746-ddc9-41af-9b5a-03d76208e499",
    "73d848bc-cb92-4b23-b1ef-3980bf8b9afa",
    "d7e9b794-a2b9-471a-abeb-bcee573257a9",
    "3cba3b5c-5217-45fd-99c3-48ed680730b9",
    "f9354319-8fe8-42ac-bf93-76478b8f1ac7",
    "efce83f6-adcc-4940-ac7e-1e55626fa0dc",
    "df072dd9-4142-4a62-8ba5-d33908dfaa9e",
    "63b52f8a-d186-4fed-a8f7-d3d3df7edebf",
    "28c4f154-8640-486c-b31c-3e7af78d4085",
]

PAYMENT_DESCRIPTIONS = [
    "Payment for order",
    "Full payment received",
    "Partial payment",
    "Initial payment",
    "Online payment",
    "Card payment processed",
    "PayPal payment received",
    "Cash payment",
]

REFUND_DESCRIPTIONS = [
    "Full refund issued",
    "Partial refund",
    "Customer requested refund",
    "Refund for returned items",
    "Refund - quality issues",
    "Refund - order cancelled",
    "Refund - duplicate charge",
]

PROCESSORS = [
    "system-auto",
    "admin@store.com",
    "payment-gateway",
    "cashier-001",
    "cashier-002",
    "manager@store.com",
    "support@store.com",
]


def _token(rng: random.Random, length: int = 6) -> str:
    return "".join(rng.choices(string.ascii_uppercase + string.digits, k=length))


def _metadata(rng: random.Random, tx_type: TransactionType) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "ipAddress": ".".join(str(rng.randrange(256)) for _ in range(4)),
        "userAgent": "Mozilla/5.0 (compatible; Store/1.0)",
    }
    if tx_type == TransactionType.PAYMENT:
        data["gateway"] = rng.choice(["stripe", "paypal", "square"])
        data["cardLast4"] = str(rng.randint(1000, 9999))
        data["cardBrand"] = rng.choice(["visa", "mastercard", "amex"])
    else:
        data["refundReason"] = rng.choice(["customer_request", "quality_issue", "cancelled"])
        data["originalTransactionRef"] = f"TXN-ORIG-{_token(rng)}"
    return data


def build_demo_transactions(order_ids: Sequence[str], rng: random.Random) -> List[PaymentTransaction]:
    """3-5 random transactions per order, the first one always a payment."""
    now = utcnow()
    records = []
    for order_id in order_ids:
        for i in range(rng.randint(3, 5)):
            if i == 0 or rng.random() <= 0.8:
                tx_type = TransactionType.PAYMENT
            else:
                tx_type = TransactionType.REFUND
            descriptions = PAYMENT_DESCRIPTIONS if tx_type == TransactionType.PAYMENT else REFUND_DESCRIPTIONS
            records.append(PaymentTransaction(
                order_id=order_id,
                amount=round(rng.uniform(50, 500), 2),
                currency=rng.choice(list(Currency)),
                type=tx_type,
                status=rng.choice(list(TransactionStatus)),
                payment_method=rng.choice(list(PaymentMethod)),
                transaction_time=now - timedelta(days=rng.randrange(90), hours=rng.randrange(24)),
                transaction_reference=f"TXN-{int(time.time() * 1000)}-{_token(rng)}",
                description=rng.choice(descriptions),
                processed_by=rng.choice(PROCESSORS),
                payment_metadata=_metadata(rng, tx_type),
            ))
    return records


async def seed_transactions(store: TransactionStore, order_ids: Sequence[str] = DEMO_ORDER_IDS,
                            rng: Optional[random.Random] = None) -> int:
    existing = await store.count_all()
    if existing > 0:
        logger.info("Database already contains %s transactions. Skipping seed.", existing)
        return 0

    logger.info("Starting database seeding...")
    records = build_demo_transactions(order_ids, rng or random.Random())
    inserted = await store.insert_many(records)

    types = Counter(tx.type.value for tx in records)
    statuses = Counter(tx.status.value for tx in records)
    logger.info(
        "Seeded %s transactions for %s orders (payments=%s refunds=%s completed=%s pending=%s failed=%s)",
        inserted, len(order_ids),
        types[TransactionType.PAYMENT.value], types[TransactionType.REFUND.value],
        statuses[TransactionStatus.COMPLETED.value], statuses[TransactionStatus.PENDING.value],
        statuses[TransactionStatus.FAILED.value],
    )
    return inserted


async def clear_transactions(store: TransactionStore) -> int:
    deleted = await store.delete_all()
    logger.info("Cleared %s transactions from database", deleted)
    return deleted
