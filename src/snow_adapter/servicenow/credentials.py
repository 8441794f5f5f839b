"""Connection settings for the ServiceNow adapter.

Each setting (instance URL, username, password, table) is resolved
independently, first match wins:

1. Explicit value passed by the caller
2. Environment variable (``SERVICENOW_URL``, ``SERVICENOW_USERNAME``,
   ``SERVICENOW_PASSWORD``, ``SERVICENOW_TABLE``)
3. System keyring entry under the ``snow-change-adapter`` service
4. Nearest ``.env`` file, searching upward from the working directory

The table falls back to ``change_request`` when no source provides one.

Example:
    from snow_adapter.servicenow.credentials import load_adapter_properties

    properties = load_adapter_properties(table="change_request")
    adapter = ServiceNowAdapter("snow-prod", properties)
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import NamedTuple

import keyring

from snow_adapter.core.exceptions import ConfigurationError
from snow_adapter.core.models import AdapterProperties

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "snow-change-adapter"
DEFAULT_TABLE = "change_request"

ENV_URL = "SERVICENOW_URL"
ENV_USERNAME = "SERVICENOW_USERNAME"
ENV_PASSWORD = "SERVICENOW_PASSWORD"  # noqa: S105
ENV_TABLE = "SERVICENOW_TABLE"


class Setting(NamedTuple):
    """Where one connection setting can be found."""

    env_var: str
    account: str


# Setting name -> environment variable / keyring account
SETTINGS: dict[str, Setting] = {
    "url": Setting(ENV_URL, "url"),
    "username": Setting(ENV_USERNAME, "username"),
    "password": Setting(ENV_PASSWORD, "password"),
    "table": Setting(ENV_TABLE, "table"),
}
CREDENTIAL_FIELDS = ("url", "username", "password")


class ServiceNowCredentials(NamedTuple):
    """ServiceNow instance credentials."""

    url: str
    username: str
    password: str


def resolve_settings(
    explicit: Mapping[str, str | None],
    service: str = DEFAULT_SERVICE,
) -> dict[str, str]:
    """Resolve the requested settings through the lookup chain.

    Args:
        explicit: Setting name to caller-supplied value (None to look it up)
        service: Keyring service name

    Returns:
        Setting name to value, for every setting some source provided
    """
    resolved: dict[str, str] = {}
    dotenv: dict[str, str] | None = None

    for name, value in explicit.items():
        setting = SETTINGS[name]
        value = value or os.environ.get(setting.env_var) or _get_from_keyring(service, setting.account)
        if not value:
            if dotenv is None:
                dotenv = _load_dotenv()
            value = dotenv.get(setting.env_var)
        if value:
            resolved[name] = value

    return resolved


def get_credentials(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    service: str = DEFAULT_SERVICE,
) -> ServiceNowCredentials:
    """Resolve the instance URL and login.

    Raises:
        ConfigurationError: If any of the three values cannot be found
    """
    resolved = resolve_settings({"url": url, "username": username, "password": password}, service)
    _require(resolved, CREDENTIAL_FIELDS)
    return ServiceNowCredentials(
        url=resolved["url"].rstrip("/"),
        username=resolved["username"],
        password=resolved["password"],
    )


def get_table(table: str | None = None, service: str = DEFAULT_SERVICE) -> str:
    """Resolve the table name, defaulting to ``change_request``."""
    return resolve_settings({"table": table}, service).get("table", DEFAULT_TABLE)


def load_adapter_properties(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    table: str | None = None,
    service: str = DEFAULT_SERVICE,
) -> AdapterProperties:
    """Build validated adapter properties from all four settings.

    Raises:
        ConfigurationError: If a credential is missing or a value is invalid
    """
    resolved = resolve_settings(
        {"url": url, "username": username, "password": password, "table": table},
        service,
    )
    _require(resolved, CREDENTIAL_FIELDS)
    return AdapterProperties.parse(
        {
            "url": resolved["url"].rstrip("/"),
            "auth": {"username": resolved["username"], "password": resolved["password"]},
            "serviceNowTable": resolved.get("table", DEFAULT_TABLE),
        }
    )


def save_credentials(
    url: str,
    username: str,
    password: str,
    table: str | None = None,
    service: str = DEFAULT_SERVICE,
) -> None:
    """Store settings in the system keyring.

    The table is stored only when given.
    """
    values = {"url": url, "username": username, "password": password, "table": table}
    for name, value in values.items():
        if value:
            keyring.set_password(service, SETTINGS[name].account, value)
    logger.info("Settings saved to keyring (service: %s)", service)


def delete_credentials(service: str = DEFAULT_SERVICE) -> None:
    """Remove every stored setting from the system keyring."""
    for setting in SETTINGS.values():
        try:
            keyring.delete_password(service, setting.account)
        except keyring.errors.PasswordDeleteError:
            logger.debug("No keyring entry %s/%s to delete", service, setting.account)
    logger.info("Settings deleted from keyring (service: %s)", service)


def _require(resolved: Mapping[str, str], names: tuple[str, ...]) -> None:
    missing = [name for name in names if name not in resolved]
    if missing:
        env_vars = ", ".join(SETTINGS[name].env_var for name in missing)
        raise ConfigurationError(
            f"Missing ServiceNow settings: {', '.join(missing)}. "
            f"Set {env_vars}, run 'snow-adapter config setup', or pass them explicitly.",
            field=missing[0],
            provider="servicenow",
        )


def _get_from_keyring(service: str, account: str) -> str | None:
    try:
        return keyring.get_password(service, account)
    except keyring.errors.KeyringError as e:
        logger.debug("Keyring lookup %s/%s failed: %s", service, account, e)
        return None


def _find_dotenv() -> Path | None:
    cwd = Path.cwd()
    return next((d / ".env" for d in (cwd, *cwd.parents) if (d / ".env").is_file()), None)


def _load_dotenv() -> dict[str, str]:
    """Read ``KEY=value`` pairs from the nearest .env file.

    Blank lines and ``#`` comments are skipped; matching outer quotes are
    removed from values.
    """
    path = _find_dotenv()
    if path is None:
        return {}

    logger.debug("Loading settings from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return {}

    values: dict[str, str] = {}
    for raw in text.splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] in "\"'" and value[-1] == value[0]:
            value = value[1:-1]
        values[key.strip()] = value
    return values
