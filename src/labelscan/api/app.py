from __future__ import annotations

import json
from typing import Any, Dict, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..config import load_analysis_config, load_chat_config
from ..errors import LabelScanError, UpstreamError, ValidationError
from ..gateway.analysis import AnalysisGateway
from ..gateway.chat import ChatGateway
from ..logging import get_logger
from ..paths import find_project_root


LOG = get_logger("api")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _json(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def _error(exc: LabelScanError) -> JSONResponse:
    body: Dict[str, Any] = {"error": exc.message}
    if isinstance(exc, UpstreamError) and exc.details:
        body["details"] = exc.details
    return _json(body, status_code=exc.status_code)


async def _read_object(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    try:
        data = json.loads(raw or b"{}")
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data


async def preflight(_: Request) -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


def create_app(
    root_dir: Optional[str] = None,
    *,
    analysis_gateway: Optional[AnalysisGateway] = None,
    chat_gateway: Optional[ChatGateway] = None,
) -> Starlette:
    """Create the Starlette app exposing the analysis and chat endpoints.

    Gateways default to ones built from env/.env; tests pass their own.
    """

    project_root = find_project_root(root_dir)
    if analysis_gateway is None:
        analysis_gateway = AnalysisGateway(load_analysis_config(project_root))
    if chat_gateway is None:
        chat_gateway = ChatGateway(load_chat_config(project_root))

    if not analysis_gateway.config.api_key:
        LOG.warning("AI gateway key is not configured; /analyze-food will answer 500")
    if not chat_gateway.config.api_key:
        LOG.warning("GEMINI_API_KEY is not configured; /food-chat will answer 500")

    async def health(_: Request) -> JSONResponse:
        return _json(
            {
                "status": "ok",
                "analysis_configured": bool(analysis_gateway.config.api_key),
                "chat_configured": bool(chat_gateway.config.api_key),
            }
        )

    async def analyze_food(request: Request) -> Response:
        if request.method == "OPTIONS":
            return await preflight(request)
        try:
            data = await _read_object(request)
            result = await run_in_threadpool(
                analysis_gateway.analyze_food,
                data.get("imageBase64"),
                data.get("userProfile"),
            )
            LOG.info("Returning analysis result (score=%r)", result.score)
            return _json(result.as_dict())
        except LabelScanError as exc:
            LOG.error("analyze-food failed: %s", exc.message)
            return _error(exc)
        except Exception as exc:
            LOG.exception("analyze-food crashed")
            return _json({"error": str(exc)}, status_code=500)

    async def food_chat(request: Request) -> Response:
        if request.method == "OPTIONS":
            return await preflight(request)
        try:
            data = await _read_object(request)
            messages = data.get("messages") or []
            if not isinstance(messages, list):
                raise ValidationError("messages must be a list")
            reply = await run_in_threadpool(chat_gateway.chat, messages, data.get("scanContext"))
            return _json({"reply": reply})
        except LabelScanError as exc:
            LOG.error("food-chat failed: %s", exc.message)
            return _error(exc)
        except Exception as exc:
            LOG.exception("food-chat crashed")
            return _json({"error": str(exc)}, status_code=500)

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/functions/v1/analyze-food", analyze_food, methods=["POST", "OPTIONS"]),
        Route("/functions/v1/food-chat", food_chat, methods=["POST", "OPTIONS"]),
    ]

    return Starlette(debug=False, routes=routes)


__all__ = ["create_app", "CORS_HEADERS"]
