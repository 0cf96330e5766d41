"""
Entrypoint for the hybrid ramp routing web service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from execution.validation import InvalidRequest
from services.webapp import routes
from services.webapp.dependencies import get_settlement_executor, get_smart_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="hybrid-ramp",
    description="Smart order routing and simulated settlement for the on/off-ramp demo",
    version="0.1.0",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(routes.router)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, messages)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages) or "Invalid request body"},
    )


@app.exception_handler(InvalidRequest)
async def _invalid_request_handler(request: Request, exc: InvalidRequest) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "violations": exc.violations},
    )


@app.on_event("startup")
async def _startup() -> None:
    router = get_smart_router()
    executor = get_settlement_executor()
    logger.info(
        "Routing service ready: threshold=%.2f USD, settlement=%s",
        router.threshold_usd,
        "relayer" if executor is not None else "simulated",
    )


@app.on_event("shutdown")
async def _shutdown() -> None:
    executor = get_settlement_executor()
    if executor is not None:
        try:
            executor.close()
        except Exception as exc:
            logger.warning("Failed to close relayer client cleanly: %s", exc)
