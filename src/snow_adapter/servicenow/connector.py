"""HTTP connector for the ServiceNow Table API.

The connector issues exactly one request per call and hands the raw body
back to the adapter. It does not parse records, retry, or page.

Example:
    from snow_adapter.servicenow.connector import ServiceNowConnector

    with ServiceNowConnector(
        url="https://dev12345.service-now.com",
        username="admin",
        password="secret",
        service_now_table="change_request",
    ) as connector:
        response = connector.get()
"""

import logging
from typing import Any

import requests
from requests.auth import HTTPBasicAuth

from snow_adapter.core.exceptions import (
    AuthenticationError,
    ITSMConnectionError,
    NotFoundError,
    ProviderError,
)
from snow_adapter.core.models import ConnectorResponse

logger = logging.getLogger(__name__)

TABLE_API_PATH = "/api/now/table"
DEFAULT_QUERY = "sysparm_limit=1"


class ServiceNowConnector:
    """Thin requests-based client scoped to one ServiceNow table.

    Attributes:
        url: ServiceNow instance base URL
        service_now_table: Table the connector reads from and posts to
    """

    provider_name = "servicenow"

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        service_now_table: str,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the connector.

        Args:
            url: Instance URL (e.g., https://dev12345.service-now.com)
            username: Login username
            password: Login password
            service_now_table: Table name (e.g., 'change_request')
            session: Optional preconfigured session
        """
        self.url = url.rstrip("/")
        self.service_now_table = service_now_table

        self._session = session or requests.Session()
        self._session.auth = HTTPBasicAuth(username, password)
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        logger.debug(
            "Initialized %s connector for %s (table: %s, user: %s)",
            self.provider_name,
            self.url,
            service_now_table,
            username,
        )

    def __enter__(self) -> "ServiceNowConnector":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit - close session."""
        self.close()

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()
        logger.debug("Closed %s connector session", self.provider_name)

    @property
    def table_url(self) -> str:
        """Full URL of the configured table resource."""
        return f"{self.url}{TABLE_API_PATH}/{self.service_now_table}"

    def get(self, query: str | None = None) -> ConnectorResponse:
        """Read records from the configured table.

        Args:
            query: Raw query string (defaults to ``sysparm_limit=1``)

        Returns:
            Raw response with the unparsed body
        """
        return self._request("GET", f"{self.table_url}?{query or DEFAULT_QUERY}")

    def post(self, payload: dict[str, Any] | None = None) -> ConnectorResponse:
        """Create a record in the configured table.

        Args:
            payload: Field values for the new record

        Returns:
            Raw response with the unparsed body
        """
        return self._request("POST", self.table_url, json=payload)

    def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
    ) -> ConnectorResponse:
        """Make a single HTTP request.

        Raises:
            AuthenticationError: If authentication fails (401, 403)
            NotFoundError: If the table or instance path does not exist (404)
            ITSMConnectionError: If the instance cannot be reached or the
                request fails before a response is read
            ProviderError: For other HTTP errors
        """
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method=method, url=url, json=json)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise ITSMConnectionError(
                f"Connection to {self.url} failed: {e}",
                provider=self.provider_name,
                details={"url": url},
            ) from e
        except requests.exceptions.RequestException as e:
            # Any other requests failure, e.g. MissingSchema or TooManyRedirects
            raise ITSMConnectionError(
                f"Request to {url} failed: {e}",
                provider=self.provider_name,
                details={"url": url, "error": type(e).__name__},
            ) from e

        logger.debug(
            "%s %s -> %d (%d bytes)",
            method,
            url,
            response.status_code,
            len(response.content),
        )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Authentication failed. Check your credentials.",
                provider=self.provider_name,
                details={"status_code": response.status_code, "url": url},
            )

        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}",
                resource_type="table",
                resource_id=self.service_now_table,
                provider=self.provider_name,
                details={"status_code": 404, "url": url},
            )

        if response.status_code >= 400:
            raise ProviderError(
                f"Request failed: {response.status_code}",
                status_code=response.status_code,
                provider=self.provider_name,
                details={"url": url, "response": response.text},
            )

        return ConnectorResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )
