from __future__ import annotations

import logging
from typing import List, Optional, Union
from xml.etree import ElementTree as ET

from .errors import MalformedXmlError, ResponseValidationError
from .xml_records import find_children, find_first, iter_texts, parse_xml


logger = logging.getLogger(__name__)


def _service_errors(root: ET.Element) -> List[str]:
    # Error payloads look like <errors><error>Invalid token</error></errors>
    if root.tag == "errors":
        containers = [root]
    else:
        containers = list(root.iter("errors"))
    messages: List[str] = []
    for errors in containers:
        messages.extend(t.strip() for t in iter_texts(find_children(errors, "error")))
    return [m for m in messages if m]


def validate_response(
    body: Union[bytes, str],
    expected_root: str,
    *,
    status_code: Optional[int] = None,
) -> ET.Element:
    """
    Check a response body before any field is read from it.

    Returns the first element named `expected_root` (the document root or a
    descendant). Raises ResponseValidationError when the body is not XML,
    when the service reports errors (message taken from `errors > error`),
    or when neither the expected element nor an error element is present.
    """
    try:
        root = parse_xml(body)
    except MalformedXmlError as exc:
        raise ResponseValidationError(
            f"malformed response body: {exc}", status_code=status_code
        ) from exc

    found = find_first(root, expected_root)
    if found is not None:
        return found

    messages = _service_errors(root)
    if messages:
        logger.warning("Service reported errors: %s", messages)
        raise ResponseValidationError(
            "; ".join(messages), errors=messages, status_code=status_code
        )

    logger.warning(
        "Unrecognized response shape: expected <%s>, got <%s>", expected_root, root.tag
    )
    raise ResponseValidationError(
        f"expected response root element to be {expected_root}, got none",
        status_code=status_code,
    )


__all__ = ["validate_response"]
