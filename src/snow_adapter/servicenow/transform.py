"""Translation between ServiceNow table rows and ChangeRequest records.

Outgoing bodies use the host's quote-escaped JSON string form: the compact
JSON text wrapped in double quotes with every inner ``"`` written as ``\\"``.
"""

import json
from typing import Any

from snow_adapter.core.exceptions import EmptyResponseError, MalformedResponseError
from snow_adapter.core.models import ChangeRequest, ConnectorResponse

HIBERNATION_MARKER = "Instance Hibernating page"


def is_hibernating(response: ConnectorResponse | None) -> bool:
    """Check whether a response is the hibernation page of a dormant instance.

    A hibernating developer instance still answers 200, but with an HTML
    page instead of JSON.
    """
    if response is None or not response.body:
        return False
    return (
        response.status_code == 200
        and "<html" in response.body
        and HIBERNATION_MARKER in response.body
    )


def escape_body(obj: Any) -> str:
    """Serialize ``obj`` to compact JSON and quote-escape it."""
    text = json.dumps(obj, separators=(",", ":"))
    return '"' + text.replace('"', '\\"') + '"'


def unescape_body(text: str) -> Any:
    """Parse a body produced by :func:`escape_body`."""
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise MalformedResponseError("Body is not a quote-escaped JSON string")
    return json.loads(text[1:-1].replace('\\"', '"'))


def _parse_result(body: str | None) -> Any:
    if not body:
        raise EmptyResponseError("Response has no body", provider="servicenow")
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedResponseError(
            f"Response body is not valid JSON: {e}",
            provider="servicenow",
            details={"body": body[:200]},
        ) from e
    if not isinstance(data, dict) or "result" not in data:
        raise MalformedResponseError(
            "Response body has no 'result' field",
            provider="servicenow",
            details={"body": body[:200]},
        )
    return data["result"]


def to_change_requests(body: str | None) -> list[ChangeRequest]:
    """Parse a table GET body into records, preserving order.

    Raises:
        EmptyResponseError: If the body is missing or empty
        MalformedResponseError: If the body is not JSON or 'result' is not a list
    """
    result = _parse_result(body)
    if not isinstance(result, list):
        raise MalformedResponseError("Expected 'result' to be a list", provider="servicenow")
    records = []
    for row in result:
        if not isinstance(row, dict):
            raise MalformedResponseError(
                f"Expected record object, got {type(row).__name__}",
                provider="servicenow",
            )
        records.append(ChangeRequest.from_servicenow(row))
    return records


def to_change_request(body: str | None) -> ChangeRequest:
    """Parse a table POST body into a single record.

    Raises:
        EmptyResponseError: If the body is missing or empty
        MalformedResponseError: If the body is not JSON or 'result' is not an object
    """
    result = _parse_result(body)
    if not isinstance(result, dict):
        raise MalformedResponseError("Expected 'result' to be an object", provider="servicenow")
    return ChangeRequest.from_servicenow(result)


def transform_get_body(body: str | None) -> str:
    """Rewrite a GET body as escaped ``{"result": [records...]}``."""
    records = to_change_requests(body)
    return escape_body({"result": [record.model_dump() for record in records]})


def transform_post_body(body: str | None) -> str:
    """Rewrite a POST body as a single escaped record."""
    return escape_body(to_change_request(body).model_dump())
