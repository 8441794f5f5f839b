"""ServiceNow change request adapter.

The host platform constructs the adapter with an instance id and connection
properties, subscribes to its ``ONLINE``/``OFFLINE`` events, and calls
``connect()`` once at startup.

Example:
    from snow_adapter.servicenow import ServiceNowAdapter, unescape_body

    adapter = ServiceNowAdapter(
        "snow-prod",
        {
            "url": "https://dev12345.service-now.com",
            "auth": {"username": "admin", "password": "secret"},
            "serviceNowTable": "change_request",
        },
    )
    adapter.subscribe("ONLINE", lambda payload: print("up", payload["id"]))
    adapter.connect()

    response = adapter.get_record()
    records = unescape_body(response.body)["result"]
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from snow_adapter.core.events import EventBus
from snow_adapter.core.exceptions import (
    ConfigurationError,
    InstanceHibernatingError,
    ITSMError,
)
from snow_adapter.core.interfaces import EventHandler, EventPublisher
from snow_adapter.core.models import AdapterProperties, AdapterStatus, ConnectorResponse
from snow_adapter.servicenow.connector import ServiceNowConnector
from snow_adapter.servicenow.transform import (
    is_hibernating,
    transform_get_body,
    transform_post_body,
)

# Data-first host callback: (response_data, error)
RequestCallback = Callable[[ConnectorResponse | None, ITSMError | None], Any]


class ServiceNowAdapter:
    """Adapter exposing one ServiceNow table to a host automation platform.

    Attributes:
        id: Adapter instance identity used in logs and event payloads
        props: Validated adapter properties
        connector: Connector scoped to the configured table
        events: Publisher for ONLINE/OFFLINE status events
    """

    provider_name = "servicenow"

    def __init__(
        self,
        id: str,  # noqa: A002
        adapter_properties: AdapterProperties | Mapping[str, Any],
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        events: EventPublisher | None = None,
        connector: ServiceNowConnector | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            id: Adapter instance identity
            adapter_properties: Properties object or host-supplied mapping
            logger: Logging collaborator (defaults to the module logger)
            events: Event publisher (defaults to a new EventBus)
            connector: Preconfigured connector (built from properties if omitted)

        Raises:
            ConfigurationError: If the id or a required property is missing
        """
        if not isinstance(id, str) or not id.strip():
            raise ConfigurationError(
                "Adapter id must be a non-empty string",
                field="id",
                provider=self.provider_name,
            )
        self.id = id
        self.props = AdapterProperties.parse(adapter_properties)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.events = events if events is not None else EventBus()
        self.connector = connector or ServiceNowConnector(
            url=self.props.url,
            username=self.props.auth.username,
            password=self.props.auth.password,
            service_now_table=self.props.service_now_table,
        )

    def __enter__(self) -> "ServiceNowAdapter":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.disconnect()

    def connect(self) -> None:
        """Run a single healthcheck and emit ONLINE or OFFLINE.

        Never raises; unexpected failures are logged and reported as OFFLINE.
        """
        try:
            self.healthcheck()
        except Exception:
            self.logger.exception("ServiceNow adapter %s: unexpected failure during connect", self.id)
            self.emit_offline()

    def disconnect(self) -> None:
        """Close the connector's HTTP session."""
        self.connector.close()
        self.logger.info("ServiceNow adapter %s disconnected", self.id)

    def healthcheck(self, callback: RequestCallback | None = None) -> bool:
        """Verify the instance is available and emit the matching status.

        Args:
            callback: Optional ``(data, error)`` callback

        Returns:
            True if the instance is online
        """
        try:
            response = self.get_record()
        except InstanceHibernatingError as e:
            self.emit_offline()
            self.logger.error("ServiceNow adapter %s: instance is hibernating", self.id)
            if callback:
                callback(None, e)
            return False
        except ITSMError as e:
            self.emit_offline()
            self.logger.error("ServiceNow adapter %s: health check failed: %s", self.id, e)
            if callback:
                callback(None, e)
            return False

        self.emit_online()
        self.logger.debug("ServiceNow adapter %s: no runtime problems detected", self.id)
        if callback:
            callback(response, None)
        return True

    def subscribe(self, status: AdapterStatus | str, handler: EventHandler) -> None:
        """Register a handler for a status event."""
        self.events.subscribe(_status_name(status), handler)

    def unsubscribe(self, status: AdapterStatus | str, handler: EventHandler) -> None:
        """Remove a status event handler."""
        self.events.unsubscribe(_status_name(status), handler)

    def emit_offline(self) -> None:
        """Emit OFFLINE: the instance is not available."""
        self.emit_status(AdapterStatus.OFFLINE)
        self.logger.warning("ServiceNow: instance %s is unavailable", self.id)

    def emit_online(self) -> None:
        """Emit ONLINE: the instance is available."""
        self.emit_status(AdapterStatus.ONLINE)
        self.logger.info("ServiceNow: instance %s is available", self.id)

    def emit_status(self, status: AdapterStatus | str) -> None:
        """Publish a status event carrying this adapter's id."""
        self.events.publish(_status_name(status), {"id": self.id})

    def get_record(self, callback: RequestCallback | None = None) -> ConnectorResponse | None:
        """Read change requests from the configured table.

        The response body is replaced with the escaped JSON of
        ``{"result": [ChangeRequest...]}``.

        Args:
            callback: Optional ``(data, error)`` callback. When given, errors
                are passed to it instead of being raised.

        Returns:
            The transformed response, or None if an error went to the callback

        Raises:
            ITSMError: On transport, hibernation or malformed-body errors when
                no callback is given
        """
        return self._dispatch("GET", self.connector.get, transform_get_body, callback)

    def post_record(
        self,
        payload: dict[str, Any] | None = None,
        callback: RequestCallback | None = None,
    ) -> ConnectorResponse | None:
        """Create a change request in the configured table.

        The response body is replaced with the escaped JSON of the single
        created ChangeRequest.

        Args:
            payload: Field values for the new record
            callback: Optional ``(data, error)`` callback

        Returns:
            The transformed response, or None if an error went to the callback
        """
        return self._dispatch(
            "POST",
            lambda: self.connector.post(payload),
            transform_post_body,
            callback,
        )

    def _dispatch(
        self,
        method: str,
        send: Callable[[], ConnectorResponse],
        transform: Callable[[str | None], str],
        callback: RequestCallback | None,
    ) -> ConnectorResponse | None:
        try:
            response = self._transform(method, send(), transform)
        except ITSMError as e:
            if callback is None:
                raise
            callback(None, e)
            return None

        if callback:
            callback(response, None)
        return response

    def _transform(
        self,
        method: str,
        response: ConnectorResponse,
        transform: Callable[[str | None], str],
    ) -> ConnectorResponse:
        if method == "GET":
            self.logger.info("ServiceNow adapter %s: GET response error: %s", self.id, response.error)
        if is_hibernating(response):
            raise InstanceHibernatingError(
                "ServiceNow instance is hibernating",
                provider=self.provider_name,
                details={"url": self.props.url},
            )
        if not response.body:
            self.logger.warning(
                "ServiceNow adapter %s: %s response has no body (status %d)",
                self.id,
                method,
                response.status_code,
            )

        response.body = transform(response.body)
        if method == "POST":
            self.logger.info("ServiceNow adapter %s: POST response: %s", self.id, response.body)
        return response


def _status_name(status: AdapterStatus | str) -> str:
    return status.value if isinstance(status, AdapterStatus) else status
