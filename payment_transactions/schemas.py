from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator
from pydantic.alias_generators import to_camel
from .models import Currency, PaymentMethod, PaymentTransaction, TransactionStatus, TransactionType
from .utils import to_utc

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# opaque caller data, stored and returned as given
Metadata = Dict[str, JsonValue]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTransactionIn(CamelModel):
    model_config = ConfigDict(extra="forbid")

    order_id: UUID = Field(..., description="Order ID from the orders service")
    amount: float = Field(..., gt=0, strict=True, allow_inf_nan=False, description="Transaction amount, strictly positive")
    currency: Optional[Currency] = Field(default=None, description="Defaults to UAH when omitted")
    type: TransactionType
    status: TransactionStatus
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    description: Optional[str] = None
    transaction_time: Optional[datetime] = Field(default=None, description="Defaults to creation time when omitted")
    processed_by: Optional[str] = None
    metadata: Optional[Metadata] = None


class TransactionOut(CamelModel):
    id: str
    order_id: str
    amount: float
    currency: Currency
    type: TransactionType
    status: TransactionStatus
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    description: Optional[str] = None
    transaction_time: datetime
    processed_by: Optional[str] = None
    metadata: Optional[Metadata] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("transaction_time", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # sqlite hands timestamps back without an offset
        return to_utc(value)

    @classmethod
    def from_record(cls, tx: PaymentTransaction) -> "TransactionOut":
        return cls(
            id=tx.id,
            order_id=tx.order_id,
            amount=tx.amount,
            currency=tx.currency,
            type=tx.type,
            status=tx.status,
            payment_method=tx.payment_method,
            transaction_reference=tx.transaction_reference,
            description=tx.description,
            transaction_time=tx.transaction_time,
            processed_by=tx.processed_by,
            metadata=tx.payment_metadata,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
        )


class TransactionCountsIn(CamelModel):
    model_config = ConfigDict(extra="forbid")

    # kept as sent, the counts come back under the same keys
    order_ids: List[str] = Field(..., min_length=1)

    @field_validator("order_ids")
    @classmethod
    def _uuids(cls, value: List[str]) -> List[str]:
        for order_id in value:
            UUID(order_id)
        return value


class TransactionCountsOut(BaseModel):
    counts: Dict[str, int]


class OrderCustomer(CamelModel):
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class OrderSummary(CamelModel):
    """What the orders service returns for a single order."""

    id: str
    amount: Optional[float] = None
    status: Optional[str] = None
    customer: Optional[OrderCustomer] = None
