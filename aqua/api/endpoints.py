"""API endpoints for quotes and ledger reads."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from aqua.amm import StableSwapAMM
from aqua.models.api import (
    BalancesRequest,
    BalancesResponse,
    QuoteRequest,
    QuoteResponse,
)
from aqua.models.ledger import LedgerSnapshot
from aqua.models.strategy import InvalidStrategy, StableSwapStrategy
from aqua.service import get_default_engine

logger = structlog.get_logger()

router = APIRouter()


def get_engine() -> StableSwapAMM:
    """Dependency provider for the engine instance.

    Override this in tests to inject a prepared engine:
        app.dependency_overrides[get_engine] = lambda: engine
    """
    return get_default_engine()


def _strategy(request: QuoteRequest) -> StableSwapStrategy:
    try:
        return request.strategy.to_strategy()
    except InvalidStrategy as err:
        raise HTTPException(status_code=422, detail=str(err)) from err


@router.post("/quote/exact-in", response_model=QuoteResponse)
def quote_exact_in(
    request: QuoteRequest,
    engine: StableSwapAMM = Depends(get_engine),
) -> QuoteResponse:
    """Quote the output for selling an exact input amount."""
    strategy = _strategy(request)
    amount_in = int(request.amount)
    amount_out = engine.quote_exact_in(strategy, request.zero_for_one, amount_in)
    token_in, token_out = strategy.resolve(request.zero_for_one)

    logger.debug(
        "quoted_exact_in",
        strategy_hash=strategy.strategy_hash,
        amount_in=amount_in,
        amount_out=amount_out,
    )
    return QuoteResponse(
        strategy_hash=strategy.strategy_hash,
        token_in=token_in,
        token_out=token_out,
        amount_in=str(amount_in),
        amount_out=str(amount_out),
    )


@router.post("/quote/exact-out", response_model=QuoteResponse)
def quote_exact_out(
    request: QuoteRequest,
    engine: StableSwapAMM = Depends(get_engine),
) -> QuoteResponse:
    """Quote the input needed to buy an exact output amount."""
    strategy = _strategy(request)
    amount_out = int(request.amount)
    amount_in = engine.quote_exact_out(strategy, request.zero_for_one, amount_out)
    token_in, token_out = strategy.resolve(request.zero_for_one)

    logger.debug(
        "quoted_exact_out",
        strategy_hash=strategy.strategy_hash,
        amount_in=amount_in,
        amount_out=amount_out,
    )
    return QuoteResponse(
        strategy_hash=strategy.strategy_hash,
        token_in=token_in,
        token_out=token_out,
        amount_in=str(amount_in),
        amount_out=str(amount_out),
    )


@router.post("/balances", response_model=BalancesResponse)
def balances(
    request: BalancesRequest,
    engine: StableSwapAMM = Depends(get_engine),
) -> BalancesResponse:
    """Safe read of both token balances of an active strategy."""
    amount_a, amount_b = engine.ledger.read_both_balances(
        request.provider,
        request.app or engine.address,
        request.strategy_hash,
        request.token_a,
        request.token_b,
    )
    return BalancesResponse(amount_a=str(amount_a), amount_b=str(amount_b))


@router.get("/snapshot", response_model=LedgerSnapshot)
def snapshot(engine: StableSwapAMM = Depends(get_engine)) -> LedgerSnapshot:
    """Export every ledger entry in the persisted layout."""
    return engine.ledger.export_snapshot()
