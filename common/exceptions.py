from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ApiException(HTTPException):
    """
    HTTP error carrying a message template and its parameters.

    Clients receive the raw template plus parameters so they can localize
    the message; `message` renders it for logs.
    """

    status_code_default = status.HTTP_400_BAD_REQUEST
    headers_default: Optional[Dict[str, str]] = None

    def __init__(self, template: str, parameters: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        self.template = template
        self.parameters = dict(parameters or {})
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=self.message,
            headers=self.headers_default,
        )

    @property
    def message(self) -> str:
        rendered = self.template
        # Longest names first so %fieldValue is not clobbered by a %field parameter
        for name in sorted(self.parameters, key=len, reverse=True):
            rendered = rendered.replace(f"%{name}", str(self.parameters[name]))
        return rendered


class NoSuchEntityException(ApiException):
    """
    404 for a missing record looked up by a single field.
    """

    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, field_name: str = "id", field_value: Any = None):
        super().__init__(
            "No such entity with %fieldName = %fieldValue",
            {"fieldName": field_name, "fieldValue": field_value},
        )


class InputException(ApiException):
    status_code_default = status.HTTP_400_BAD_REQUEST


class AuthenticationException(ApiException):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    headers_default = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(ApiException):
    status_code_default = status.HTTP_403_FORBIDDEN


class ConflictException(ApiException):
    status_code_default = status.HTTP_409_CONFLICT
