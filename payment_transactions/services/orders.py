import enum
import logging
import httpx
from typing import Optional
from ..errors import OrderNotFound, ValidationUnavailable
from ..schemas import OrderSummary

logger = logging.getLogger(__name__)

ORDER_PATH = "/api/orders/{order_id}"


class ValidationFailurePolicy(str, enum.Enum):
    """What to do when the orders service cannot answer."""

    FAIL = "fail"
    BYPASS_WITH_WARNING = "bypass_with_warning"


def create_orders_client(base_url: str, timeout: float = 5.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers={"Content-Type": "application/json"},
    )


class OrderValidator:
    def __init__(self, client: httpx.AsyncClient,
                 on_validation_failure: ValidationFailurePolicy = ValidationFailurePolicy.FAIL):
        self.client = client
        self.on_validation_failure = on_validation_failure

    async def _fetch(self, order_id: str) -> Optional[httpx.Response]:
        """
        Fetch one order. Returns None on 404; transport errors and other error
        statuses are raised as httpx.HTTPError.
        """
        resp = await self.client.get(ORDER_PATH.format(order_id=order_id))
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp

    async def validate_order_exists(self, order_id: str) -> Optional[OrderSummary]:
        """
        Confirm the order exists in the orders service.

        Any 2xx answer confirms the order; its body is parsed into a summary
        when it can be, otherwise None is returned. Raises OrderNotFound when
        the service answers 404. Any other failure is fatal
        (ValidationUnavailable) under FAIL; under BYPASS_WITH_WARNING it is
        logged and the order is treated as valid, returning None.
        """
        logger.debug("Validating order exists: %s", order_id)
        try:
            resp = await self._fetch(order_id)
        except httpx.HTTPError as e:
            if self.on_validation_failure == ValidationFailurePolicy.BYPASS_WITH_WARNING:
                logger.warning(
                    "Orders service unavailable, continuing without validating order %s. Error was: %s",
                    order_id, e,
                )
                return None
            logger.error("Error validating order %s: %s", order_id, e)
            raise ValidationUnavailable(f"Failed to validate order: {e}") from e

        if resp is None:
            logger.warning("Order not found: %s", order_id)
            raise OrderNotFound(order_id)

        logger.debug("Order validated successfully: %s", order_id)
        try:
            return OrderSummary.model_validate(resp.json())
        except ValueError as e:
            logger.warning("Order %s confirmed but its summary could not be read: %s", order_id, e)
            return None

    async def get_order_details(self, order_id: str) -> Optional[OrderSummary]:
        """Order data, or None if the orders service does not know the id."""
        try:
            resp = await self._fetch(order_id)
            if resp is None:
                return None
            return OrderSummary.model_validate(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching order %s: %s", order_id, e)
            raise ValidationUnavailable(f"Failed to fetch order: {e}") from e
