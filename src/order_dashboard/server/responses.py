"""Response helpers for the JSON API."""

import math
from typing import Any, Dict, Iterable

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def error_response(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    """``{"error": message}`` with optional extra keys."""
    return JSONResponse(status_code=status_code, content=jsonable_encoder({**extra, "error": message}))


def paginated(data: Iterable[Any], page: int, page_size: int, total: int) -> Dict[str, Any]:
    """Listing body with the pagination block the dashboard tables expect."""
    return {
        "data": list(data),
        "pagination": {
            "page": page,
            "pageSize": page_size,
            "totalCount": total,
            "totalPages": math.ceil(total / page_size) if total else 0,
        },
    }
