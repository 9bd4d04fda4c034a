# =============================================================================
# app/responses.py - Success Envelopes & Pagination
# =============================================================================
# Every successful JSON response goes through one of these helpers:
#
#   success_response(data)                -> {success, data, timestamp}
#   created_response(data)                -> same, status 201
#   paginated_response(items, page, ...)  -> {success, data, pagination, timestamp}
#
# Error envelopes are produced by the handlers in app/exceptions.py.
# =============================================================================

import math
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from app.exceptions import ValidationError


def _encode(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_encode(item) for item in data]
    return jsonable_encoder(data)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(
    data: Any = None,
    meta: dict[str, Any] | None = None,
    status_code: int = 200,
) -> JSONResponse:
    """
    Wrap data in the success envelope.

    Keys in `meta` are merged into the top level of the body.
    """
    body: dict[str, Any] = {"success": True, "data": _encode(data)}
    if meta:
        body.update(jsonable_encoder(meta))
    body["timestamp"] = _timestamp()
    return JSONResponse(status_code=status_code, content=body)


def created_response(data: Any = None, meta: dict[str, Any] | None = None) -> JSONResponse:
    return success_response(data, meta=meta, status_code=201)


def pagination_meta(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def paginated_response(items: list[Any], page: int, limit: int, total: int) -> JSONResponse:
    return success_response(items, meta={"pagination": pagination_meta(page, limit, total)})


def validate_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """
    Check page/limit query values.

    Missing values fall back to page 1 and the configured default limit.

    Returns:
        Tuple of (page, limit)

    Raises:
        ValidationError: If either value is below 1 or limit exceeds the maximum
    """
    page = 1 if page is None else page
    limit = settings.PAGINATION_DEFAULT_LIMIT if limit is None else limit

    errors = []
    if page < 1:
        errors.append({"field": "page", "message": "Page must be at least 1"})
    if limit < 1:
        errors.append({"field": "limit", "message": "Limit must be at least 1"})
    elif limit > settings.PAGINATION_MAX_LIMIT:
        errors.append({
            "field": "limit",
            "message": f"Limit must be at most {settings.PAGINATION_MAX_LIMIT}",
        })
    if errors:
        raise ValidationError("Invalid pagination parameters", details=errors)

    return page, limit
