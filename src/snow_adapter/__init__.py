"""
snow-change-adapter: ServiceNow change request adapter for automation platforms.

The adapter reads and creates change request records through the ServiceNow
Table API, normalizes them into a fixed record shape, and reports instance
availability through ONLINE/OFFLINE status events.

Example Usage:
    from snow_adapter import AdapterStatus, ServiceNowAdapter

    adapter = ServiceNowAdapter("snow-prod", {
        "url": "https://dev12345.service-now.com",
        "auth": {"username": "admin", "password": "secret"},
        "serviceNowTable": "change_request",
    })
    adapter.subscribe(AdapterStatus.OFFLINE, lambda payload: alert(payload["id"]))
    adapter.connect()
"""

from snow_adapter.core.events import EventBus
from snow_adapter.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EmptyResponseError,
    InstanceHibernatingError,
    ITSMConnectionError,
    ITSMError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
)
from snow_adapter.core.interfaces import EventPublisher
from snow_adapter.core.models import (
    AdapterProperties,
    AdapterStatus,
    ChangeRequest,
    ConnectorResponse,
)
from snow_adapter.servicenow.adapter import ServiceNowAdapter
from snow_adapter.servicenow.connector import ServiceNowConnector

__version__ = "0.1.0"

__all__ = [
    # Models
    "AdapterProperties",
    "AdapterStatus",
    "ChangeRequest",
    "ConnectorResponse",
    # Events
    "EventPublisher",
    "EventBus",
    # Adapter
    "ServiceNowAdapter",
    "ServiceNowConnector",
    # Exceptions
    "ITSMError",
    "ConfigurationError",
    "AuthenticationError",
    "NotFoundError",
    "ITSMConnectionError",
    "ProviderError",
    "InstanceHibernatingError",
    "MalformedResponseError",
    "EmptyResponseError",
]
