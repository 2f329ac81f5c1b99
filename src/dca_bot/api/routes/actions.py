"""POST endpoints that drive the scheduler state machine and config."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dca_bot.exceptions import UnsupportedTokenError
from dca_bot.models import FrequencyTier
from dca_bot.tokens import get_token

log = structlog.get_logger(__name__)

router = APIRouter()


class TierRequest(BaseModel):
    tier: FrequencyTier


class ValueRequest(BaseModel):
    value: float = Field(ge=0, le=100)


class TokensRequest(BaseModel):
    source: str
    target: str


def _status(request: Request, **extra: object) -> JSONResponse:
    content = request.app.state.scheduler.snapshot().to_dict()
    content.update(extra)
    return JSONResponse(content=content)


@router.post("/start")
async def start(request: Request) -> JSONResponse:
    """Arm the schedule; started is False if refused (active or zero balance)."""
    started = request.app.state.scheduler.start()
    log.info("dca_start_via_api", started=started)
    return _status(request, started=started)


@router.post("/stop")
async def stop(request: Request) -> JSONResponse:
    stopped = request.app.state.scheduler.stop()
    log.info("dca_stop_via_api", stopped=stopped)
    return _status(request, stopped=stopped)


@router.post("/swap-tokens")
async def swap_tokens(request: Request) -> JSONResponse:
    request.app.state.scheduler.swap_tokens()
    return _status(request)


@router.post("/tokens")
async def update_tokens(request: Request, body: TokensRequest) -> JSONResponse:
    try:
        source = get_token(body.source)
        target = get_token(body.target)
    except UnsupportedTokenError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    request.app.state.scheduler.update_tokens(source, target)
    return _status(request)


@router.post("/tier")
async def change_tier(request: Request, body: TierRequest) -> JSONResponse:
    request.app.state.scheduler.on_tier_change(body.tier)
    return _status(request)


@router.post("/value")
async def change_value(request: Request, body: ValueRequest) -> JSONResponse:
    request.app.state.scheduler.on_value_change(body.value)
    return _status(request)


@router.post("/trigger")
async def trigger(request: Request) -> JSONResponse:
    """Run one swap attempt now and return its outcome."""
    outcome = await request.app.state.scheduler.trigger_attempt_now()
    return JSONResponse(content=outcome.to_dict())
