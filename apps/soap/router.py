import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, Type, Union, get_args, get_origin

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from apps.categories.schemas import CategoryPayload
from apps.categories.service import CategoryService
from apps.soap.codec import SOAP_CONTENT_TYPE, SoapParseError, parse_envelope, render_fault, render_response
from common.exceptions import ApiException, InputException
from constants.acl import CATEGORIES
from models.base import get_db
from models.user import User
from security.auth_backend import authenticate_token, authorize_resources, optional_oauth2_scheme
from settings.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/soap", tags=["SOAP"])

Handler = Callable[[AsyncSession, User, Dict[str, Any]], Awaitable[Any]]


def _int_argument(args: Dict[str, Any], name: str) -> int:
    try:
        return int(args[name])
    except (KeyError, TypeError, ValueError):
        raise InputException('"%fieldName" is required. Enter and try again.', {"fieldName": name}) from None


async def _get(db: AsyncSession, user: User, args: Dict[str, Any]) -> Any:
    category = await CategoryService.get_category(db, _int_argument(args, "category_id"))
    return (await CategoryService.build_response(db, category)).model_dump(mode="json")


def _list_fields(model: Type[BaseModel]) -> FrozenSet[str]:
    names = set()
    for name, field in model.model_fields.items():
        annotation = field.annotation
        candidates = get_args(annotation) if get_origin(annotation) is Union else (annotation,)
        if any(get_origin(c) is list for c in candidates):
            names.add(name)
    return frozenset(names)


_CATEGORY_LIST_FIELDS = _list_fields(CategoryPayload)


async def _save(db: AsyncSession, user: User, args: Dict[str, Any]) -> Any:
    raw = args.get("category")
    data = dict(raw) if isinstance(raw, dict) else {}
    # An empty list goes over the wire as an empty element
    for name in _CATEGORY_LIST_FIELDS:
        if data.get(name) == "":
            data[name] = []
    payload = CategoryPayload.model_validate(data)
    category_id: Optional[int] = _int_argument(args, "id") if args.get("id") not in (None, "") else None
    category = await CategoryService.save_category(db, payload, user, category_id=category_id)
    return (await CategoryService.build_response(db, category)).model_dump(mode="json")


async def _delete(db: AsyncSession, user: User, args: Dict[str, Any]) -> Any:
    return await CategoryService.delete_category(db, _int_argument(args, "category_id"))


# operation suffix (after the service name) -> handler
_OPERATIONS: Dict[str, Handler] = {
    "Get": _get,
    "Save": _save,
    "DeleteByIdentifier": _delete,
}


def _fault(namespace: str, reason: str, http_status: int, parameters: Optional[Dict[str, Any]] = None) -> Response:
    sender_error = http_status < 500
    body = render_fault(
        namespace,
        reason,
        parameters=parameters,
        http_status=http_status,
        code="Sender" if sender_error else "Receiver",
    )
    return Response(
        content=body,
        status_code=status.HTTP_400_BAD_REQUEST if sender_error else status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type=SOAP_CONTENT_TYPE,
    )


@router.post("/{service_name}")
async def dispatch(
    service_name: str,
    request: Request,
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
):
    """
    SOAP binding of the category repository: {service}Get, {service}Save and
    {service}DeleteByIdentifier. Errors come back as SOAP faults.
    """
    namespace = f"urn:{service_name}"
    if service_name != get_settings().SOAP_SERVICE_NAME:
        return _fault(namespace, 'Requested service is not available: "%service"', 404, {"service": service_name})

    try:
        operation, args = parse_envelope(await request.body())
        handler = _OPERATIONS.get(operation[len(service_name):]) if operation.startswith(service_name) else None
        if handler is None:
            raise InputException('Operation "%operation" not found.', {"operation": operation})
        user = await authenticate_token(db, token)
        await authorize_resources(db, user, (CATEGORIES,))
        result = await handler(db, user, args)
    except SoapParseError as exc:
        return _fault(namespace, str(exc), status.HTTP_400_BAD_REQUEST)
    except ValidationError as exc:
        fields = ",".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return _fault(namespace, "Invalid value of %fieldName provided.", status.HTTP_400_BAD_REQUEST, {"fieldName": fields})
    except ApiException as exc:
        return _fault(namespace, exc.template, exc.status_code, exc.parameters)

    logger.debug("SOAP %s handled", operation)
    return Response(content=render_response(namespace, operation, result), media_type=SOAP_CONTENT_TYPE)
