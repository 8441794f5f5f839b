"""ServiceNow change request adapter.

This module provides:
- ServiceNowAdapter: host-facing lifecycle, status events and record access
- ServiceNowConnector: HTTP client for the ServiceNow Table API
- Credential resolution from env vars, keyring, or .env files

Example:
    from snow_adapter.servicenow import ServiceNowAdapter, load_adapter_properties

    with ServiceNowAdapter("snow-prod", load_adapter_properties()) as adapter:
        response = adapter.get_record()
"""

from snow_adapter.servicenow.adapter import ServiceNowAdapter
from snow_adapter.servicenow.connector import ServiceNowConnector
from snow_adapter.servicenow.credentials import (
    ServiceNowCredentials,
    delete_credentials,
    get_credentials,
    load_adapter_properties,
    save_credentials,
)
from snow_adapter.servicenow.transform import escape_body, is_hibernating, unescape_body

__all__ = [
    "ServiceNowAdapter",
    "ServiceNowConnector",
    "ServiceNowCredentials",
    "get_credentials",
    "save_credentials",
    "delete_credentials",
    "load_adapter_properties",
    "escape_body",
    "unescape_body",
    "is_hibernating",
]
