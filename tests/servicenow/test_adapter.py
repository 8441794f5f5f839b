"""Tests for ServiceNowAdapter."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests
import responses

from snow_adapter.core.events import EventBus
from snow_adapter.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EmptyResponseError,
    InstanceHibernatingError,
    ITSMConnectionError,
    MalformedResponseError,
)
from snow_adapter.core.models import AdapterStatus, ConnectorResponse
from snow_adapter.servicenow.adapter import ServiceNowAdapter
from snow_adapter.servicenow.transform import unescape_body

TABLE_URL = "https://dev12345.service-now.com/api/now/table/change_request"


@pytest.fixture
def adapter(adapter_properties: dict) -> ServiceNowAdapter:
    """Create an adapter backed by a real connector."""
    return ServiceNowAdapter("snow-test", adapter_properties)


@pytest.fixture
def events(adapter: ServiceNowAdapter) -> dict[str, list[dict]]:
    """Record every status event emitted by the adapter."""
    seen: dict[str, list[dict]] = {"ONLINE": [], "OFFLINE": []}
    adapter.subscribe(AdapterStatus.ONLINE, seen["ONLINE"].append)
    adapter.subscribe(AdapterStatus.OFFLINE, seen["OFFLINE"].append)
    return seen


class TestAdapterInit:
    """Tests for adapter construction."""

    def test_builds_connector_from_properties(self, adapter: ServiceNowAdapter) -> None:
        """Test that the connector is scoped to the configured table."""
        assert adapter.id == "snow-test"
        assert adapter.connector.url == "https://dev12345.service-now.com"
        assert adapter.connector.service_now_table == "change_request"
        assert isinstance(adapter.events, EventBus)

    def test_no_io_on_construction(self, adapter_properties: dict) -> None:
        """Test that construction does not touch the network."""
        with patch("requests.Session.request") as mock_request:
            ServiceNowAdapter("snow-test", adapter_properties)
        mock_request.assert_not_called()

    @pytest.mark.parametrize("identity", ["", "   ", None])
    def test_invalid_id(self, adapter_properties: dict, identity: object) -> None:
        """Test that an empty id is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            ServiceNowAdapter(identity, adapter_properties)  # type: ignore[arg-type]
        assert exc_info.value.field == "id"

    def test_missing_property_before_connector(self, adapter_properties: dict) -> None:
        """Test that validation happens before the connector is built."""
        del adapter_properties["auth"]["username"]
        with patch("snow_adapter.servicenow.adapter.ServiceNowConnector") as mock_connector:
            with pytest.raises(ConfigurationError):
                ServiceNowAdapter("snow-test", adapter_properties)
        mock_connector.assert_not_called()

    def test_injected_collaborators(self, properties) -> None:
        """Test that logger, publisher and connector can be injected."""
        log = MagicMock(spec=logging.Logger)
        bus = MagicMock()
        connector = MagicMock()

        adapter = ServiceNowAdapter("snow-test", properties, logger=log, events=bus, connector=connector)

        assert adapter.logger is log
        assert adapter.events is bus
        assert adapter.connector is connector


class TestEmitStatus:
    """Tests for status event emission."""

    def test_emit_online(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test ONLINE carries exactly the adapter id."""
        adapter.emit_online()
        assert events["ONLINE"] == [{"id": "snow-test"}]
        assert events["OFFLINE"] == []

    def test_emit_offline(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test OFFLINE carries exactly the adapter id."""
        adapter.emit_offline()
        assert events["OFFLINE"] == [{"id": "snow-test"}]

    def test_emit_status_twice(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test that repeated statuses are not deduplicated."""
        adapter.emit_status("ONLINE")
        adapter.emit_status(AdapterStatus.ONLINE)
        assert events["ONLINE"] == [{"id": "snow-test"}, {"id": "snow-test"}]

    def test_emit_logs(self, properties) -> None:
        """Test log severities of online and offline emission."""
        log = MagicMock(spec=logging.Logger)
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=MagicMock())

        adapter.emit_online()
        adapter.emit_offline()

        log.info.assert_called_once()
        log.warning.assert_called_once()

    def test_unsubscribe(self, adapter: ServiceNowAdapter) -> None:
        """Test removing a status handler."""
        handler = MagicMock()
        adapter.subscribe("ONLINE", handler)
        adapter.unsubscribe("ONLINE", handler)
        adapter.emit_online()
        handler.assert_not_called()


class TestGetRecord:
    """Tests for get_record."""

    @responses.activate
    def test_transforms_body(self, adapter: ServiceNowAdapter, get_body: str) -> None:
        """Test the GET remapping through the adapter."""
        responses.add(responses.GET, TABLE_URL, body=get_body, status=200)

        response = adapter.get_record()

        assert len(responses.calls) == 1
        assert unescape_body(response.body) == {
            "result": [
                {
                    "change_ticket_number": "CHG1",
                    "active": True,
                    "priority": "2",
                    "description": "d",
                    "work_start": "t1",
                    "work_end": "t2",
                    "change_ticket_key": "id1",
                }
            ]
        }

    @responses.activate
    def test_empty_result(self, adapter: ServiceNowAdapter) -> None:
        """Test that an empty table yields an empty result list."""
        responses.add(responses.GET, TABLE_URL, json={"result": []}, status=200)

        response = adapter.get_record()

        assert response.body == '"{\\"result\\":[]}"'

    @responses.activate
    def test_callback_receives_response(self, adapter: ServiceNowAdapter, get_body: str) -> None:
        """Test data-first callback on success."""
        responses.add(responses.GET, TABLE_URL, body=get_body, status=200)
        callback = MagicMock()

        response = adapter.get_record(callback)

        callback.assert_called_once_with(response, None)

    @responses.activate
    def test_malformed_body_goes_to_callback(self, adapter: ServiceNowAdapter) -> None:
        """Test that a parse failure is reported through the callback, not raised."""
        responses.add(responses.GET, TABLE_URL, body="not json", status=200)
        callback = MagicMock()

        assert adapter.get_record(callback) is None

        data, error = callback.call_args.args
        assert data is None
        assert isinstance(error, MalformedResponseError)

    @responses.activate
    def test_malformed_body_raises_without_callback(self, adapter: ServiceNowAdapter) -> None:
        """Test that a parse failure raises when no callback is given."""
        responses.add(responses.GET, TABLE_URL, body='{"records": []}', status=200)

        with pytest.raises(MalformedResponseError):
            adapter.get_record()

    def test_empty_body_is_logged(self, properties) -> None:
        """Test that a missing body is a distinct, logged outcome."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(status_code=200, body=None)
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)
        callback = MagicMock()

        adapter.get_record(callback)

        log.warning.assert_called_once()
        assert isinstance(callback.call_args.args[1], EmptyResponseError)

    @responses.activate
    def test_transport_error_goes_to_callback(self, adapter: ServiceNowAdapter) -> None:
        """Test that a transport error reaches the callback's error argument."""
        responses.add(responses.GET, TABLE_URL, json={}, status=401)
        callback = MagicMock()

        adapter.get_record(callback)

        data, error = callback.call_args.args
        assert data is None
        assert isinstance(error, AuthenticationError)

    def test_logs_error_field_at_info(self, properties, get_body: str) -> None:
        """Test that the response error field is logged at info."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(status_code=200, body=get_body)
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)

        adapter.get_record()

        log.info.assert_called_once()
        connector.get.assert_called_once_with()

    def test_logs_error_field_when_transform_fails(self, properties) -> None:
        """Test that the error field is logged even if the body cannot be parsed."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(
            status_code=200, body="not json", error="upstream warning"
        )
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)

        with pytest.raises(MalformedResponseError):
            adapter.get_record()

        log.info.assert_called_once()
        assert "upstream warning" in log.info.call_args.args


class TestPostRecord:
    """Tests for post_record."""

    @responses.activate
    def test_transforms_body(self, adapter: ServiceNowAdapter, post_body: str) -> None:
        """Test the POST remapping through the adapter."""
        responses.add(responses.POST, TABLE_URL, body=post_body, status=201)

        response = adapter.post_record({"short_description": "Patch"})

        assert len(responses.calls) == 1
        assert unescape_body(response.body) == {
            "change_ticket_number": "CHG2",
            "active": False,
            "priority": "1",
            "description": "x",
            "work_start": "t3",
            "work_end": "t4",
            "change_ticket_key": "id2",
        }

    def test_passes_payload_to_connector(self, properties, post_body: str) -> None:
        """Test that the payload is forwarded unchanged."""
        connector = MagicMock()
        connector.post.return_value = ConnectorResponse(status_code=201, body=post_body)
        adapter = ServiceNowAdapter("snow-test", properties, connector=connector)

        adapter.post_record({"priority": "3"})

        connector.post.assert_called_once_with({"priority": "3"})

    @responses.activate
    def test_callback_receives_response(self, adapter: ServiceNowAdapter, post_body: str) -> None:
        """Test data-first callback on success."""
        responses.add(responses.POST, TABLE_URL, body=post_body, status=201)
        callback = MagicMock()

        response = adapter.post_record(callback=callback)

        callback.assert_called_once_with(response, None)

    @responses.activate
    def test_list_result_is_malformed(self, adapter: ServiceNowAdapter, get_body: str) -> None:
        """Test that a list result is rejected for POST."""
        responses.add(responses.POST, TABLE_URL, body=get_body, status=201)

        with pytest.raises(MalformedResponseError):
            adapter.post_record()

    @responses.activate
    def test_hibernating(self, adapter: ServiceNowAdapter, hibernating_page: str) -> None:
        """Test that a hibernation page is not parsed as a record."""
        responses.add(responses.POST, TABLE_URL, body=hibernating_page, status=200)

        with pytest.raises(InstanceHibernatingError):
            adapter.post_record()


class TestHealthcheck:
    """Tests for healthcheck branches."""

    @responses.activate
    def test_healthy(self, adapter: ServiceNowAdapter, events: dict, get_body: str) -> None:
        """Test that a healthy instance emits exactly one ONLINE."""
        responses.add(responses.GET, TABLE_URL, body=get_body, status=200)
        callback = MagicMock()

        assert adapter.healthcheck(callback) is True

        assert events["ONLINE"] == [{"id": "snow-test"}]
        assert events["OFFLINE"] == []
        data, error = callback.call_args.args
        assert error is None
        assert unescape_body(data.body)["result"][0]["change_ticket_number"] == "CHG1"
        assert len(responses.calls) == 1

    @responses.activate
    def test_transport_error(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test that a transport error emits exactly one OFFLINE and forwards the error."""
        responses.add(
            responses.GET,
            TABLE_URL,
            body=requests.exceptions.ConnectionError("refused"),
        )
        callback = MagicMock()

        assert adapter.healthcheck(callback) is False

        assert events["OFFLINE"] == [{"id": "snow-test"}]
        assert events["ONLINE"] == []
        callback.assert_called_once()
        data, error = callback.call_args.args
        assert data is None
        assert isinstance(error, ITSMConnectionError)

    @pytest.mark.parametrize(
        "url, failure",
        [
            ("https://dev12345.service-now.com", requests.exceptions.TooManyRedirects("loop")),
            ("https://dev12345.service-now.com", requests.exceptions.ChunkedEncodingError("cut")),
            ("dev12345.service-now.com", None),
        ],
        ids=["redirect-loop", "truncated-body", "url-without-scheme"],
    )
    @responses.activate
    def test_request_failure(
        self, adapter_properties: dict, url: str, failure: Exception | None
    ) -> None:
        """Test that any request failure emits one OFFLINE and reaches the callback."""
        adapter_properties["url"] = url
        adapter = ServiceNowAdapter("snow-test", adapter_properties)
        if failure is not None:
            responses.add(responses.GET, TABLE_URL, body=failure)
        offline: list[dict] = []
        adapter.subscribe(AdapterStatus.OFFLINE, offline.append)
        callback = MagicMock()

        assert adapter.healthcheck(callback) is False

        assert offline == [{"id": "snow-test"}]
        callback.assert_called_once()
        data, error = callback.call_args.args
        assert data is None
        assert isinstance(error, ITSMConnectionError)

    @responses.activate
    def test_hibernating(
        self, adapter: ServiceNowAdapter, events: dict, hibernating_page: str
    ) -> None:
        """Test that a hibernating instance emits OFFLINE without success data."""
        responses.add(responses.GET, TABLE_URL, body=hibernating_page, status=200)
        callback = MagicMock()

        assert adapter.healthcheck(callback) is False

        assert events["OFFLINE"] == [{"id": "snow-test"}]
        assert events["ONLINE"] == []
        data, error = callback.call_args.args
        assert data is None
        assert isinstance(error, InstanceHibernatingError)

    @responses.activate
    def test_malformed_body_is_offline(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test that an unparseable body is reported as OFFLINE."""
        responses.add(responses.GET, TABLE_URL, body="garbage", status=200)

        assert adapter.healthcheck() is False
        assert events["OFFLINE"] == [{"id": "snow-test"}]

    def test_error_log_includes_id(self, properties) -> None:
        """Test that failures are logged at error severity with the adapter id."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.side_effect = ITSMConnectionError("down", provider="servicenow")
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)

        adapter.healthcheck()

        log.error.assert_called_once()
        assert "snow-test" in log.error.call_args.args

    def test_healthy_logs_debug(self, properties, get_body: str) -> None:
        """Test that a healthy check logs at debug severity."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(status_code=200, body=get_body)
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)

        adapter.healthcheck()

        log.debug.assert_called_once()
        log.error.assert_not_called()

    def test_without_callback(self, properties, get_body: str) -> None:
        """Test that the callback is optional."""
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(status_code=200, body=get_body)
        adapter = ServiceNowAdapter("snow-test", properties, connector=connector)

        assert adapter.healthcheck() is True


class TestConnect:
    """Tests for connect/disconnect lifecycle."""

    @responses.activate
    def test_connect_online(self, adapter: ServiceNowAdapter, events: dict, get_body: str) -> None:
        """Test that connect runs one healthcheck."""
        responses.add(responses.GET, TABLE_URL, body=get_body, status=200)

        assert adapter.connect() is None

        assert events["ONLINE"] == [{"id": "snow-test"}]
        assert len(responses.calls) == 1

    @responses.activate
    def test_connect_offline_does_not_raise(self, adapter: ServiceNowAdapter, events: dict) -> None:
        """Test that connect swallows transport failures into OFFLINE."""
        responses.add(responses.GET, TABLE_URL, json={}, status=500)

        adapter.connect()

        assert events["OFFLINE"] == [{"id": "snow-test"}]

    def test_connect_unexpected_error(self, properties) -> None:
        """Test that unexpected failures become OFFLINE."""
        log = MagicMock(spec=logging.Logger)
        connector = MagicMock()
        connector.get.side_effect = RuntimeError("bug")
        adapter = ServiceNowAdapter("snow-test", properties, logger=log, connector=connector)
        offline = MagicMock()
        adapter.subscribe("OFFLINE", offline)

        adapter.connect()

        offline.assert_called_once_with({"id": "snow-test"})
        log.exception.assert_called_once()

    def test_context_manager(self, properties, get_body: str) -> None:
        """Test that the adapter connects on enter and closes on exit."""
        connector = MagicMock()
        connector.get.return_value = ConnectorResponse(status_code=200, body=get_body)

        with ServiceNowAdapter("snow-test", properties, connector=connector) as adapter:
            assert adapter.connector is connector

        connector.get.assert_called_once()
        connector.close.assert_called_once()
