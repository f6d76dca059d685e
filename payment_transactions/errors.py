from typing import Any, Optional


class TransactionServiceError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail if detail is not None else message


class InvalidInput(TransactionServiceError):
    status_code = 400


class OrderNotFound(TransactionServiceError):
    status_code = 404

    def __init__(self, order_id: str):
        super().__init__(f"Order with id '{order_id}' not found")
        self.order_id = order_id


class ValidationUnavailable(TransactionServiceError):
    status_code = 503


class PersistenceError(TransactionServiceError):
    status_code = 500
