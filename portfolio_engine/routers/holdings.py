"""Holdings API router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from portfolio_engine.dependencies.portfolio import get_portfolio_service, get_user_id
from portfolio_engine.schemas import Holding as HoldingSchema
from portfolio_engine.schemas import HoldingBuy, HoldingSell, HoldingUpdate, SellResponse
from portfolio_engine.services.portfolio.exceptions import InvariantViolationError
from portfolio_engine.services.portfolio.portfolio_service import PortfolioService
from portfolio_engine.services.repositories.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/holdings", tags=["holdings"])


@router.get("", response_model=list[HoldingSchema])
def list_holdings(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Get the caller's holdings.

    Duplicates are merged on the way out and fixed-income holdings are
    revalued for today.
    """
    return [HoldingSchema.model_validate(holding) for holding in service.load_holdings(user_id)]


@router.post("/buy", response_model=HoldingSchema, status_code=status.HTTP_201_CREATED)
def buy(
    payload: HoldingBuy,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Record a buy.

    A buy of an asset the caller already holds (same category and ticker, or
    same category and name) updates that holding's quantity and average price
    instead of creating a new one.
    """
    try:
        holding = service.record_buy(
            user_id,
            payload.category,
            payload.name,
            payload.quantity,
            payload.price,
            ticker=payload.ticker,
            current_price=payload.current_price,
            interest_rate=payload.interest_rate,
            rate_type=payload.rate_type,
            purchase_date=payload.purchase_date,
            maturity_date=payload.maturity_date,
            notes=payload.notes,
            tags=payload.tags,
            trade_date=payload.trade_date,
        )
    except InvariantViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return HoldingSchema.model_validate(holding)


@router.post("/{holding_id}/sell", response_model=SellResponse)
def sell(
    holding_id: str,
    payload: HoldingSell,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Record a sell; a sell of the whole position (or more) closes the holding."""
    try:
        result = service.record_sell(
            user_id, holding_id, payload.quantity, payload.price, payload.trade_date
        )
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Holding not found"
        ) from e
    except InvariantViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return SellResponse.model_validate(result)


@router.patch("/{holding_id}", response_model=HoldingSchema)
def update_holding(
    holding_id: str,
    payload: HoldingUpdate,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Edit a holding directly."""
    try:
        updated = service.update_holding(user_id, holding_id, payload.changes())
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Holding not found"
        ) from e
    except InvariantViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Holding not found")
    return HoldingSchema.model_validate(updated)


@router.delete("/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holding(
    holding_id: str,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Delete a holding. Deleting an unknown id succeeds."""
    if not service.delete_holding(user_id, holding_id):
        logger.info(f"Delete of missing holding {holding_id} ignored")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
