"""Core interfaces and models for snow-change-adapter."""

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
    AuthProperties,
    ChangeRequest,
    ConnectorResponse,
)

__all__ = [
    "AdapterProperties",
    "AdapterStatus",
    "AuthProperties",
    "ChangeRequest",
    "ConnectorResponse",
    "EventPublisher",
    "EventBus",
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
