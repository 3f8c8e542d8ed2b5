"""Portfolio summary and chart router."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_engine.dependencies.portfolio import get_portfolio_service, get_user_id
from portfolio_engine.schemas import Holding as HoldingSchema
from portfolio_engine.schemas import ChartPoint, PortfolioChart, PortfolioSummary
from portfolio_engine.services.portfolio.portfolio_service import PortfolioService

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@router.get("/summary", response_model=PortfolioSummary)
def get_summary(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Portfolio totals in the display currency.

    Returns total value, total invested, profit/loss, per-category totals and
    per-holding values. USD-denominated holdings are converted with the
    current exchange rate.
    """
    summary = service.summary(user_id)
    return PortfolioSummary.model_validate(summary)


@router.get("/chart", response_model=PortfolioChart)
async def get_chart(
    period: str = Query("1m", description="1d, 1w, 1m, 6m, 1y or total"),
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Portfolio value over a period.

    The last point always equals the current portfolio total.
    """
    try:
        points = await service.build_chart(user_id, period)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return PortfolioChart(
        period=period, points=[ChartPoint.model_validate(point) for point in points]
    )


@router.post("/refresh-prices", response_model=list[HoldingSchema])
async def refresh_prices(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Update current prices of market-quoted holdings from live quotes."""
    holdings = await service.refresh_prices(user_id)
    return [HoldingSchema.model_validate(holding) for holding in holdings]
