from fastapi import APIRouter, Depends, Query
from typing import List
from uuid import UUID
from ..schemas import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    CreateTransactionIn,
    TransactionCountsIn,
    TransactionCountsOut,
    TransactionOut,
)
from ..services.transactions import TransactionService
from ..utils import get_transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])

@router.post("", response_model=TransactionOut, status_code=201,
             responses={400: {"description": "Invalid input data"}, 404: {"description": "Order not found"}})
async def create_transaction(payload: CreateTransactionIn,
                             service: TransactionService = Depends(get_transaction_service)):
    """
    Create a payment transaction for an order. The order must exist in the orders service.
    Transaction time defaults to now and currency to UAH. Use type REFUND for refunds.
    """
    return await service.create(payload)

@router.get("", response_model=List[TransactionOut],
            responses={400: {"description": "Invalid query parameters"}})
async def list_transactions(order_id: UUID = Query(..., alias="orderId"),
                            size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
                            offset: int = Query(0, ge=0, alias="from"),
                            service: TransactionService = Depends(get_transaction_service)):
    """Transactions of one order, most recent transaction time first."""
    return await service.list_by_order(order_id, size=size, offset=offset)

@router.post("/_counts", response_model=TransactionCountsOut,
             responses={400: {"description": "Invalid input data"}})
async def transaction_counts(payload: TransactionCountsIn,
                             service: TransactionService = Depends(get_transaction_service)):
    """Transaction totals for many orders at once, computed with a single aggregate query."""
    counts = await service.counts_by_orders(payload.order_ids)
    return TransactionCountsOut(counts=counts)
