from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from common.exceptions import ApiException


def paginated_response(
    items: List[Any],
    total: int,
    page: int,
    size: int,
    total_pages: int,
    message: str = "Success",
) -> Dict[str, Any]:
    """
    List envelope: {"message", "data": [...], "meta": {total, page, size, total_pages}}.
    """
    meta = {"total": total, "page": page, "size": size, "total_pages": total_pages}
    return {"message": message, "data": items, "meta": meta}


def error_response(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message}
    if details is not None:
        body["details"] = details
    return body


async def api_exception_handler(request: Request, exc: ApiException) -> JSONResponse:
    """
    Render templated API errors as {"message": template, "details": parameters}.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.template, exc.parameters or None),
        headers=exc.headers,
    )
