"""FastAPI front end triggering one purchase pipeline run per POST request."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from ticket_pipeline.core.config import Settings, get_settings
from ticket_pipeline.core.errors import ValidationError
from ticket_pipeline.core.logging import configure_logging
from ticket_pipeline.core.types import PipelineState, PurchaseRequest
from ticket_pipeline.pipeline.purchase import PurchasePipeline, build_pipeline
from ticket_pipeline.services.api.models import PurchaseTicketBody, PurchaseTicketResponse

logger = logging.getLogger(__name__)

_PURCHASE_ROUTE = "/purchase-nft-ticket"
_INVALID_AMOUNT_MESSAGE = "Invalid amountIDR"
_UNKNOWN_FAILURE_MESSAGE = "Error processing ticket purchase"
_FAILURE_MESSAGES = {
    PipelineState.BUYING_CRYPTO: "Error buying crypto on Binance",
    PipelineState.BUYING_TICKET: "Error purchasing NFT ticket",
}


def _failure_message(stage: PipelineState | None, settings: Settings) -> str:
    if stage is PipelineState.CONVERTING:
        return f"Error converting {settings.source_currency()} to {settings.target_currency()}"
    return _FAILURE_MESSAGES.get(stage, _UNKNOWN_FAILURE_MESSAGE)


def create_app(
    settings: Settings | None = None,
    pipeline: PurchasePipeline | None = None,
) -> FastAPI:
    """Build the API with explicit settings and an optional pre-wired pipeline."""

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, service="api")
    pipeline = pipeline or build_pipeline(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        """Log startup metadata for operational visibility."""

        logger.info(
            "api_startup",
            extra={
                "env": settings.ENV,
                "version": settings.VERSION,
                "source_currency": settings.source_currency(),
                "target_currency": settings.target_currency(),
                "asset": settings.crypto_asset(),
            },
        )
        yield

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Return process liveness status."""

        return {"status": "ok"}

    @app.post(_PURCHASE_ROUTE, response_model=None)
    async def purchase_nft_ticket(
        request: Request,
    ) -> PurchaseTicketResponse | PlainTextResponse:
        """Convert, buy crypto, then buy the ticket; report the transaction hash."""

        try:
            body = PurchaseTicketBody.model_validate_json(await request.body())
            purchase = PurchaseRequest(
                source_amount=body.source_amount(),
                source_currency=settings.source_currency(),
                target_currency=settings.target_currency(),
            )
        except (pydantic.ValidationError, ValidationError) as exc:
            logger.info("purchase_request_rejected", extra={"reason": str(exc)})
            return PlainTextResponse(_INVALID_AMOUNT_MESSAGE, status_code=400)

        outcome = await run_in_threadpool(pipeline.run, purchase)
        if not outcome.succeeded or outcome.transaction_hash is None:
            return PlainTextResponse(
                _failure_message(outcome.failed_stage, settings), status_code=500
            )

        return PurchaseTicketResponse(success=True, transactionHash=outcome.transaction_hash)

    return app
