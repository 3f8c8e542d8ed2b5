"""Transactions API router."""

from fastapi import APIRouter, Depends, Response, status

from portfolio_engine.dependencies.portfolio import get_portfolio_service, get_user_id
from portfolio_engine.schemas import Transaction as TransactionSchema
from portfolio_engine.services.portfolio.portfolio_service import PortfolioService

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionSchema])
def list_transactions(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Get the caller's buy and sell history, newest first."""
    return [TransactionSchema.model_validate(t) for t in service.list_transactions(user_id)]


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Delete a transaction. Holdings are not adjusted."""
    service.delete_transaction(user_id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
