"""SOAP 1.2 envelope parsing and rendering for the category service binding.

Requests are plain XML: the first element of the Body names the operation and
its children are the arguments. Elements with children become dicts, elements
whose children are all <item> become lists, and leaves become strings.
Argument names are camelCase on the wire and snake_case in Python.
"""

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

SOAP_ENV_NS = "http://www.w3.org/2003/05/soap-envelope"
XSI_NIL = "{http://www.w3.org/2001/XMLSchema-instance}nil"
SOAP_CONTENT_TYPE = "application/soap+xml; charset=utf-8"

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class SoapParseError(ValueError):
    """Raised for envelopes that are not well-formed or have no operation."""


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_to_python(element: ET.Element) -> Any:
    if element.get(XSI_NIL) in ("true", "1"):
        return None
    children = list(element)
    if not children:
        return element.text.strip() if element.text else ""
    if all(_local(child.tag) == "item" for child in children):
        return [_element_to_python(child) for child in children]
    return {to_snake(_local(child.tag)): _element_to_python(child) for child in children}


def parse_envelope(body: bytes) -> Tuple[str, Dict[str, Any]]:
    """
    Return (operation name, arguments) from a SOAP request envelope.
    """
    if b"<!DOCTYPE" in body or b"<!ENTITY" in body:
        raise SoapParseError("DTDs are not allowed in SOAP requests.")
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise SoapParseError(f"Malformed SOAP envelope: {exc}") from exc

    if _local(root.tag) != "Envelope":
        raise SoapParseError("The root element must be a SOAP Envelope.")
    soap_body = next((child for child in root if _local(child.tag) == "Body"), None)
    if soap_body is None or len(soap_body) == 0:
        raise SoapParseError("The SOAP Body does not contain an operation.")

    operation_el = soap_body[0]
    arguments = _element_to_python(operation_el)
    if not isinstance(arguments, dict):
        arguments = {}
    return _local(operation_el.tag), arguments


def camelize(value: Any) -> Any:
    """
    Recursively convert dict keys to camelCase for the wire.
    """
    if isinstance(value, dict):
        return {to_camel(k): camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [camelize(v) for v in value]
    return value


def render_response(namespace: str, operation: str, result: Any) -> str:
    template = _env.get_template("response.xml")
    return template.render(namespace=namespace, operation=operation, result=camelize(result))


def render_fault(
    namespace: str,
    reason: str,
    parameters: Optional[Dict[str, Any]] = None,
    http_status: int = 500,
    code: str = "Receiver",
) -> str:
    """
    Render a SOAP 1.2 Fault. `code` is "Sender" for caller errors, "Receiver" otherwise.
    """
    template = _env.get_template("fault.xml")
    return template.render(
        namespace=namespace,
        code=code,
        reason=reason,
        parameters=parameters or {},
        http_status=http_status,
    )
