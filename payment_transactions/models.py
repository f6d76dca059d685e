import enum
import uuid
from typing import Any, Dict, Optional
from datetime import datetime
from sqlalchemy import JSON, Column, DateTime, Index
from sqlmodel import SQLModel, Field
from .utils import utcnow


class Currency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    UAH = "UAH"
    GBP = "GBP"


class TransactionType(str, enum.Enum):
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentMethod(str, enum.Enum):
    CARD = "CARD"
    CASH = "CASH"
    PAYPAL = "PAYPAL"


DEFAULT_CURRENCY = Currency.UAH


class PaymentTransaction(SQLModel, table=True):
    __tablename__ = "payment_transactions"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    order_id: str = Field(index=True, max_length=36)
    amount: float
    currency: Currency = DEFAULT_CURRENCY
    type: TransactionType = Field(index=True)
    status: TransactionStatus = Field(index=True)
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    description: Optional[str] = None
    transaction_time: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    processed_by: Optional[str] = None
    # "metadata" is taken by SQLModel itself, the column keeps the public name
    payment_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


# list-by-order reads newest first within one order
Index(
    "ix_payment_transactions_order_id_transaction_time",
    PaymentTransaction.order_id,
    PaymentTransaction.transaction_time.desc(),
)
