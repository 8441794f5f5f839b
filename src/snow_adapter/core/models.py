"""Data models for the ServiceNow change request adapter."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from snow_adapter.core.exceptions import ConfigurationError


class AdapterStatus(str, Enum):
    """Status events emitted by an adapter."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class AuthProperties(BaseModel):
    """Basic auth credentials for the ServiceNow instance."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(description="Login username")
    password: str = Field(description="Login password")

    @field_validator("username", "password")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value


class AdapterProperties(BaseModel):
    """Adapter instance properties as supplied by the host platform."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(description="ServiceNow instance URL")
    auth: AuthProperties = Field(description="ServiceNow instance credentials")
    service_now_table: str = Field(
        alias="serviceNowTable",
        description="Table to read and create records in (e.g., 'change_request')",
    )

    @field_validator("url", "service_now_table")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def parse(cls, data: "AdapterProperties | Mapping[str, Any] | None") -> "AdapterProperties":
        """Validate host-supplied properties.

        Args:
            data: Properties object or nested mapping with ``url``,
                ``auth.username``, ``auth.password`` and ``serviceNowTable``

        Returns:
            Validated AdapterProperties

        Raises:
            ConfigurationError: If a required property is missing or empty
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ConfigurationError("Adapter properties must be a mapping", field="properties")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise ConfigurationError(
                f"Invalid adapter property '{field}': {first['msg']}",
                field=field,
            ) from e


class ChangeRequest(BaseModel):
    """Normalized change request record."""

    change_ticket_number: Any = Field(default=None, description="Ticket number (ServiceNow 'number')")
    active: Any = Field(default=None, description="Whether the change is active")
    priority: Any = Field(default=None, description="Change priority")
    description: Any = Field(default=None, description="Change description")
    work_start: Any = Field(default=None, description="Planned work start")
    work_end: Any = Field(default=None, description="Planned work end")
    change_ticket_key: Any = Field(default=None, description="Record key (ServiceNow 'sys_id')")

    @classmethod
    def from_servicenow(cls, raw: Mapping[str, Any]) -> "ChangeRequest":
        """Build a record from a raw ServiceNow table row."""
        return cls(
            change_ticket_number=raw.get("number"),
            active=raw.get("active"),
            priority=raw.get("priority"),
            description=raw.get("description"),
            work_start=raw.get("work_start"),
            work_end=raw.get("work_end"),
            change_ticket_key=raw.get("sys_id"),
        )


class ConnectorResponse(BaseModel):
    """Raw HTTP response handed back by the connector."""

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: str | None = Field(default=None, description="Response body text")
    error: Any = Field(default=None, description="Error reported alongside the response")
