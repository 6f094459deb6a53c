"""API endpoints for quoting."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from swapper.amounts import parse_amount, parse_fraction
from swapper.config import SwapConfig
from swapper.constants import SLIPPAGE_SCALE
from swapper.engine import get_default_config, get_default_quoter
from swapper.errors import NoRouteFound, PoolUnavailable, PricingError
from swapper.execution.orchestrator import slippage_bound
from swapper.models.asset import Asset
from swapper.models.quote_api import QuoteRequest, QuoteResponse
from swapper.models.types import TradeDirection
from swapper.routing.router import Quoter

logger = structlog.get_logger()

router = APIRouter()


def get_quoter() -> Quoter:
    """Dependency provider for the quoter instance.

    Override this in tests to inject a quoter over mock collaborators:
        app.dependency_overrides[get_quoter] = lambda: quoter

    Raises:
        HTTPException: 503 when no chain client is configured
    """
    quoter = get_default_quoter()
    if quoter is None:
        raise HTTPException(status_code=503, detail="No chain client configured (set SWAPPER_RPC_URL)")
    return quoter


def get_config() -> SwapConfig:
    """Dependency provider for the swap configuration (defaults such as slippage)."""
    return get_default_config()


def _resolve_asset(quoter: Quoter, identifier: str) -> Asset:
    asset = quoter.finder.asset_list.resolve(identifier)
    if asset is None:
        raise HTTPException(status_code=422, detail=f"Unknown asset: {identifier}")
    return asset


@router.post("/quote")
async def quote(
    request: QuoteRequest,
    quoter: Quoter = Depends(get_quoter),
    config: SwapConfig = Depends(get_config),
) -> QuoteResponse:
    """Quote a swap on the best available path.

    Error Handling:
        - Invalid request schema or unknown asset: 422
        - No path between the assets: 404 "No path available ..."
        - Every pool query failed: 503
        - Route cannot carry the amount: 422
    """
    source = _resolve_asset(quoter, request.source)
    destination = _resolve_asset(quoter, request.destination)
    anchor = source if request.direction is TradeDirection.EXACT_INPUT else destination
    try:
        amount = parse_amount(request.amount, anchor.decimals)
    except ValueError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err
    if amount <= 0:
        raise HTTPException(status_code=422, detail="Amount must be positive")

    logger.info(
        "received_quote_request",
        source=source.symbol,
        destination=destination.symbol,
        direction=request.direction.value,
        amount=amount,
    )

    max_hops = request.max_hops if request.max_hops is not None else config.max_hops
    try:
        result = await quoter.quote(source, destination, request.direction, amount, max_hops)
    except NoRouteFound as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    except PoolUnavailable as err:
        logger.warning("pool_unavailable", error=str(err))
        raise HTTPException(status_code=503, detail=str(err)) from err
    except PricingError as err:
        raise HTTPException(status_code=422, detail=f"Insufficient liquidity: {err}") from err

    if result.is_wrap:
        bound = amount
    else:
        slippage = request.slippage if request.slippage is not None else config.slippage_tolerance
        bound = slippage_bound(result, request.direction, parse_fraction(slippage, SLIPPAGE_SCALE))
    return QuoteResponse.from_quote(result, bound)
