"""Read-only JSON endpoints: scheduler status and display quote."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Config, countdown, history, totals, and the in-progress flag."""
    scheduler = request.app.state.scheduler
    return JSONResponse(content=scheduler.snapshot().to_dict())


@router.get("/quote")
async def get_quote(request: Request) -> JSONResponse:
    """Display quote for the next swap; quote is null when unavailable."""
    scheduler = request.app.state.scheduler
    quote = await scheduler.get_quote()
    if quote is None:
        return JSONResponse(content={"quote": None})
    return JSONResponse(content={
        "quote": {
            "expected_output": quote.expected_output,
            "price": quote.price,
            "slippage": quote.slippage_description,
        }
    })
