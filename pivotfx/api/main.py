import asyncio
import logging
import math
import os
import threading
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from pivotfx.common.formatting import format_price, format_rate_line
from pivotfx.common.models import (
    ClassifyResponse,
    ConversionRequest,
    ConversionResult,
    CurrencyGroups,
    CurrencyKind,
    MarketSnapshot,
)
from pivotfx.core.catalog import CatalogSnapshot, PriceCatalog
from pivotfx.core.engine import ConversionEngine
from pivotfx.core.errors import ConversionError, InvalidAmount, PriceUnavailable, UnknownCurrency
from pivotfx.feeds.refresh import CatalogRefresher

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(message)s",
)
log = logging.getLogger("pivotfx.api")

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
REFRESH_ENABLED = os.getenv("REFRESH_ENABLED", "true").lower() == "true"
MARKET_LIMIT = int(os.getenv("MARKET_LIMIT", "5"))
WS_POLL_SECONDS = float(os.getenv("WS_POLL_SECONDS", "1"))

ERROR_STATUS = {
    InvalidAmount: 422,
    UnknownCurrency: 404,
    PriceUnavailable: 503,
}


class ConvertResponse(ConversionResult):
    display_amount: str
    rate_line: str


def market_snapshot(snap: CatalogSnapshot, limit: Optional[int] = None) -> MarketSnapshot:
    entries = list(snap.market if limit is None else snap.market[:limit])
    updated = snap.updated_at.timestamp() if snap.updated_at else None
    return MarketSnapshot(version=snap.version, source=snap.source, updated_at=updated, entries=entries)


def create_app(
    catalog: Optional[PriceCatalog] = None,
    refresher: Optional[CatalogRefresher] = None,
    refresh_enabled: bool = REFRESH_ENABLED,
) -> FastAPI:
    catalog = catalog or PriceCatalog()
    engine = ConversionEngine(catalog)
    if refresh_enabled and refresher is None:
        refresher = CatalogRefresher(catalog)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop = threading.Event()
        if refresh_enabled:
            # first cycle inline so the first request already has prices
            await asyncio.to_thread(refresher.refresh)
            refresher.start(stop, wait_first=True)
        else:
            log.info("Catalog refresh disabled, serving catalog v%d", catalog.snapshot().version)
        yield
        stop.set()

    app = FastAPI(title="pivotfx", version="1.0.0", lifespan=lifespan)
    app.state.catalog = catalog
    app.state.engine = engine
    app.mount("/metrics", make_asgi_app())

    @app.exception_handler(ConversionError)
    async def conversion_error(request: Request, exc: ConversionError):
        status = next((s for k, s in ERROR_STATUS.items() if isinstance(exc, k)), 400)
        return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        bad_amount = any("amount" in err.get("loc", ()) for err in errors)
        detail = "; ".join(f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors)
        return JSONResponse(
            status_code=422,
            content={"error": "InvalidAmount" if bad_amount else "InvalidRequest", "detail": detail},
        )

    def respond(req: ConversionRequest) -> ConvertResponse:
        result = engine.convert_request(req)
        return ConvertResponse(
            **result.model_dump(),
            display_amount=format_price(result.converted_amount),
            rate_line=format_rate_line(result.from_code, result.to_code, result.unit_rate),
        )

    @app.get("/health")
    def health():
        snap = catalog.snapshot()
        return {
            "ok": snap.is_loaded,
            "source": snap.source,
            "version": snap.version,
            "age_seconds": catalog.age_seconds(),
        }

    @app.get("/convert", response_model=ConvertResponse)
    def convert_get(
        amount: float = Query(0.0),
        from_code: str = Query(..., alias="from", min_length=1),
        to_code: str = Query(..., alias="to", min_length=1),
    ):
        if amount < 0 or not math.isfinite(amount):
            raise InvalidAmount(amount)
        return respond(ConversionRequest(amount=amount, from_code=from_code, to_code=to_code))

    @app.post("/convert", response_model=ConvertResponse)
    def convert_post(req: ConversionRequest):
        return respond(req)

    @app.get("/classify/{code}", response_model=ClassifyResponse)
    def classify(code: str):
        snap = catalog.snapshot()
        kind = snap.classify(code)
        price = None
        if kind is not CurrencyKind.UNKNOWN:
            try:
                price = snap.price_in_usd(code)
            except PriceUnavailable:
                price = None
        return ClassifyResponse(code=code.strip().upper(), kind=kind, price_usd=price)

    @app.get("/currencies", response_model=CurrencyGroups)
    def currencies():
        return catalog.currencies()

    @app.get("/market", response_model=MarketSnapshot)
    def market(limit: int = Query(MARKET_LIMIT, ge=1, le=100)):
        return market_snapshot(catalog.snapshot(), limit)

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket):
        await ws.accept()
        last_version = None
        try:
            while True:
                snap = catalog.snapshot()
                if snap.version != last_version:
                    await ws.send_json(market_snapshot(snap, MARKET_LIMIT).model_dump(mode="json"))
                    last_version = snap.version
                # any client frame, text or binary, forces an immediate re-check
                try:
                    message = await asyncio.wait_for(ws.receive(), timeout=WS_POLL_SECONDS)
                    if message["type"] == "websocket.disconnect":
                        raise WebSocketDisconnect(message.get("code", 1000))
                except asyncio.TimeoutError:
                    pass
        except WebSocketDisconnect:
            return

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=API_HOST, port=API_PORT)
