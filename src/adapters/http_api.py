"""HTTP facade for classification-as-a-service.

``POST /classify`` takes ``{"message", "botType"}`` and answers with the
bot's response text. Nothing is persisted here; the endpoint only runs the
rule table and the response catalog of the requested bot.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from core.bots import BotRegistry, default_registry
from core.catalog import GENERIC_RESPONSE, select_for_result
from core.rules_engine import classify

LOGGER = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}

MISSING_FIELDS_ERROR = "Message and botType are required"
INTERNAL_ERROR = "Internal server error"


def _json(payload: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def classify_message(
    registry: BotRegistry,
    message: str,
    bot_type: str,
    rng: Optional[random.Random] = None,
) -> str:
    """Return the response text for a message; unknown or table-less bots get the generic reply."""

    bot = registry.find(bot_type)
    if bot is None or bot.table is None:
        return GENERIC_RESPONSE
    categories = classify(message, bot.table)
    return select_for_result(categories, bot.catalog, rng)


def create_app(registry: Optional[BotRegistry] = None, rng: Optional[random.Random] = None) -> FastAPI:
    """Build the FastAPI app. Registry and RNG are injectable for tests."""

    registry = registry or default_registry()
    rng = rng or random.Random()

    app = FastAPI(title="wellbots")
    # The middleware answers browser preflights that carry Origin and
    # Access-Control-Request-Method; the explicit OPTIONS route covers bare ones.
    # Any requested method or header is accepted.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> JSONResponse:
        return _json({"ok": True})

    @app.options("/classify")
    async def classify_preflight() -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.post("/classify")
    async def classify_endpoint(request: Request) -> JSONResponse:
        try:
            body = await request.json()
            if not isinstance(body, dict):
                body = {}
            message = body.get("message")
            bot_type = body.get("botType")
            if not message or not bot_type or not isinstance(message, str) or not isinstance(bot_type, str):
                return _json({"error": MISSING_FIELDS_ERROR}, status_code=400)

            response = classify_message(registry, message, bot_type, rng)
            return _json({"response": response})
        except Exception:
            LOGGER.exception("Error in classify endpoint")
            return _json({"error": INTERNAL_ERROR}, status_code=500)

    return app
