import uuid
from datetime import datetime, timezone
from typing import Union
from fastapi import Request
from .errors import InvalidInput

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def to_utc(value: datetime) -> datetime:
    # naive values are taken as UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def parse_order_id(value: Union[str, uuid.UUID]) -> str:
    """Return the canonical string form of an order id or raise InvalidInput."""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise InvalidInput(f"orderId must be a UUID, got '{value}'")

def get_transaction_service(request: Request):
    return request.app.state.transaction_service
