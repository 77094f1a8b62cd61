"""HTTP entrypoint exposing the multi-source listings scraper."""

from __future__ import annotations

import hmac
import logging
import time
from functools import lru_cache, wraps
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from listings.core.aggregator import Aggregator, build_default_aggregator
from listings.core.config import get_settings
from listings.core.rate_limit import SlidingWindowRateLimiter
from listings.models import utc_timestamp

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

MAX_LIMIT = 100
_STARTED_AT = time.monotonic()

# ---------- App ----------
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024


@lru_cache(maxsize=1)
def get_aggregator() -> Aggregator:
    return build_default_aggregator(get_settings())


@lru_cache(maxsize=1)
def get_rate_limiter() -> SlidingWindowRateLimiter:
    settings = get_settings()
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


# ---------- Guards ----------


def _client_key() -> str:
    return request.headers.get("x-api-key") or request.remote_addr or "unknown"


def rate_limited(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject callers that exceeded their sliding-window budget with 429."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        decision = get_rate_limiter().hit(_client_key())
        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s", request.remote_addr)
            response = jsonify(
                {
                    "error": "Too many requests",
                    "message": "Too many requests from this API key, please try again later.",
                    "retryAfter": decision.retry_after,
                }
            )
            response.headers["Retry-After"] = str(decision.retry_after)
            return response, 429
        g.rate_limit = decision
        return view(*args, **kwargs)

    return wrapper


def require_api_key(view: Callable[..., Any]) -> Callable[..., Any]:
    """401 when the x-api-key header is missing, 403 when it does not match API_KEY."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        api_key = request.headers.get("x-api-key")
        if not api_key:
            return (
                jsonify(
                    {
                        "error": "API key required",
                        "message": "Please provide an API key in the x-api-key header",
                    }
                ),
                401,
            )

        expected = get_settings().api_key
        if not expected or not hmac.compare_digest(api_key.encode(), expected.encode()):
            return (
                jsonify({"error": "Invalid API key", "message": "The provided API key is invalid"}),
                403,
            )
        return view(*args, **kwargs)

    return wrapper


@app.after_request
def add_cors_headers(response):
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type, x-api-key")
    response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, OPTIONS")

    decision = g.get("rate_limit")
    if decision is not None and decision.limit:
        response.headers["RateLimit-Limit"] = str(decision.limit)
        response.headers["RateLimit-Remaining"] = str(decision.remaining)
        response.headers["RateLimit-Reset"] = str(decision.retry_after)
    return response


# ---------- Validation ----------


ValidationResult = Tuple[Optional[Dict[str, Any]], Optional[Tuple[str, str]]]


def validate_search_params(payload: Dict[str, Any], default_limit: int) -> ValidationResult:
    """Return ``(params, None)`` for a valid body or ``(None, (error, message))``."""
    search = payload.get("search")
    location = payload.get("location")

    if not search or not location:
        return None, ("Missing required parameters", 'Both "search" and "location" parameters are required')

    if not isinstance(search, str) or not isinstance(location, str):
        return None, ("Invalid parameter types", 'Both "search" and "location" must be strings')

    if not search.strip() or not location.strip():
        return None, ("Missing required parameters", 'Both "search" and "location" parameters are required')

    limit = payload.get("limit")
    if limit is None:
        limit = default_limit
    elif isinstance(limit, float) and limit.is_integer():
        limit = int(limit)

    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LIMIT:
        return None, ("Invalid limit", f"Limit must be a number between 1 and {MAX_LIMIT}")

    return {"search": search, "location": location, "limit": limit}, None


# ---------- Routes ----------


@app.get("/health")
@app.get("/healthz")
def healthcheck() -> Any:
    return (
        jsonify(
            {
                "status": "OK",
                "timestamp": utc_timestamp(),
                "uptime": round(time.monotonic() - _STARTED_AT, 3),
            }
        ),
        200,
    )


@app.post("/scrape")
@rate_limited
@require_api_key
def scrape() -> Any:
    """
    Scrape business listings from every configured source.
    Required JSON fields: search, location
    Optional: limit (int, 1-100, default 10)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}

    params, error = validate_search_params(payload, get_settings().default_limit)
    if error is not None:
        title, message = error
        return jsonify({"error": title, "message": message}), 400

    logger.info("Scraping request: %s in %s, limit: %s", params["search"], params["location"], params["limit"])

    try:
        records = get_aggregator().aggregate(params["search"], params["location"], params["limit"])
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scraping error: %s", exc)
        return (
            jsonify(
                {
                    "error": "Scraping failed",
                    "message": "An unexpected error occurred while scraping",
                    "timestamp": utc_timestamp(),
                }
            ),
            500,
        )

    data: List[Dict[str, Any]] = [record.to_dict() for record in records]
    return (
        jsonify(
            {
                "success": True,
                "data": data,
                "metadata": {
                    "count": len(data),
                    "search": params["search"],
                    "location": params["location"],
                    "timestamp": utc_timestamp(),
                },
            }
        ),
        200,
    )


# ---------- Errors ----------


@app.errorhandler(404)
@app.errorhandler(405)
def not_found(exc: HTTPException) -> Any:
    return (
        jsonify({"error": "Endpoint not found", "message": f"Route {request.path} does not exist"}),
        404,
    )


@app.errorhandler(413)
def payload_too_large(exc: HTTPException) -> Any:
    return jsonify({"error": "Payload too large", "message": "Request body exceeds 10mb"}), 413


@app.errorhandler(Exception)
def unhandled_error(exc: Exception) -> Any:
    if isinstance(exc, HTTPException):
        return jsonify({"error": exc.name, "message": exc.description}), exc.code
    logger.exception("Unhandled error: %s", exc)
    return jsonify({"error": "Internal server error", "message": "An unexpected error occurred"}), 500


def main() -> None:
    settings = get_settings()
    logger.info("[BOOT] Scraper API running on port %d", settings.port)
    logger.info("[BOOT] Environment: %s", settings.app_env)
    app.run(host="0.0.0.0", port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
