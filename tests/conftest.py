"""Shared pytest fixtures for snow-change-adapter tests."""

import json
from typing import Any

import pytest

from snow_adapter.core.models import AdapterProperties

INSTANCE_URL = "https://dev12345.service-now.com"
TABLE_URL = f"{INSTANCE_URL}/api/now/table/change_request"

HIBERNATING_PAGE = (
    "<html><head><title>ServiceNow</title></head>"
    "<body><!-- Instance Hibernating page --><p>Your instance is hibernating.</p></body></html>"
)


@pytest.fixture
def hibernating_page() -> str:
    """Body served by a hibernating developer instance."""
    return HIBERNATING_PAGE


@pytest.fixture
def adapter_properties() -> dict[str, Any]:
    """Host-supplied adapter properties."""
    return {
        "url": INSTANCE_URL,
        "auth": {"username": "admin", "password": "secret"},
        "serviceNowTable": "change_request",
    }


@pytest.fixture
def properties(adapter_properties: dict[str, Any]) -> AdapterProperties:
    """Validated AdapterProperties."""
    return AdapterProperties.parse(adapter_properties)


@pytest.fixture
def sample_row() -> dict[str, Any]:
    """Sample ServiceNow change_request row."""
    return {
        "number": "CHG1",
        "active": True,
        "priority": "2",
        "description": "d",
        "work_start": "t1",
        "work_end": "t2",
        "sys_id": "id1",
        "short_description": "ignored",
    }


@pytest.fixture
def get_body(sample_row: dict[str, Any]) -> str:
    """Table GET response body."""
    return json.dumps({"result": [sample_row]})


@pytest.fixture
def post_body() -> str:
    """Table POST response body."""
    return json.dumps(
        {
            "result": {
                "number": "CHG2",
                "active": False,
                "priority": "1",
                "description": "x",
                "work_start": "t3",
                "work_end": "t4",
                "sys_id": "id2",
            }
        }
    )
