from __future__ import annotations

import httpx
import pytest

from azsm.errors import AzureError, OperationDecodeError, PollTimeoutError, TransportError
from azsm.utils.operation_monitor import OperationPoller, perform_operation_polling
from conftest import BASE_URL, operation_xml


def status_response(status: str, code: int = 200) -> httpx.Response:
    return httpx.Response(code, content=operation_xml(status))


@pytest.mark.parametrize(
    ("status", "done"),
    [
        ("Succeeded", True),
        ("Failed", True),
        ("Cancelled", True),
        ("InProgress", False),
        ("", False),
    ],
)
@pytest.mark.parametrize("code", [200, 201, 204, 299])
def test_is_done_maps_operation_status(api, status, done, code) -> None:
    poller = OperationPoller(api, "op-1")

    assert poller.is_done(status_response(status, code), None) is done


@pytest.mark.parametrize("code", [199, 300, 307, 404, 500, 503])
def test_is_done_keeps_polling_on_non_success_status_codes(api, code) -> None:
    poller = OperationPoller(api, "op-1")
    response = httpx.Response(code, content=b"not xml at all")

    assert poller.is_done(response, None) is False


def test_is_done_propagates_transport_errors(api) -> None:
    poller = OperationPoller(api, "op-1")
    error = TransportError("connection refused")

    with pytest.raises(TransportError) as excinfo:
        poller.is_done(None, error)

    assert excinfo.value is error


def test_is_done_raises_decode_errors_on_success_codes(api) -> None:
    poller = OperationPoller(api, "op-1")

    with pytest.raises(OperationDecodeError):
        poller.is_done(httpx.Response(200, content=b"<Operation><Status>"), None)


def test_is_done_is_repeatable(api) -> None:
    poller = OperationPoller(api, "op-1")
    for response in (status_response("InProgress"), status_response("Succeeded")):
        first = poller.is_done(response, None)
        second = poller.is_done(response, None)
        assert first == second


def test_probe_queries_the_operation_status_resource(api, respx_mock) -> None:
    route = respx_mock.get(f"{BASE_URL}/operations/op-1").mock(
        return_value=httpx.Response(503, content=b"busy")
    )
    poller = OperationPoller(api, "op-1")

    response = poller.probe()

    assert route.called
    assert response.status_code == 503
    assert route.calls.last.request.headers["x-ms-version"] == "2009-10-01"


def test_perform_operation_polling_returns_decoded_status(api, respx_mock, no_sleep) -> None:
    responses = [
        httpx.Response(500, content=b"oops"),
        status_response("InProgress"),
        httpx.Response(
            200,
            content=operation_xml("Failed", http_status=409, code="ConflictError", message="nope"),
        ),
    ]
    route = respx_mock.get(f"{BASE_URL}/operations/op-1").mock(side_effect=responses)

    operation = perform_operation_polling(OperationPoller(api, "op-1"), 1.0, 60.0)

    assert route.call_count == 3
    assert operation.status == "Failed"
    assert operation.http_status_code == 409
    assert operation.error_code == "ConflictError"
    assert operation.error_message == "nope"


def test_perform_operation_polling_times_out(api, fake_clock, monkeypatch) -> None:
    calls = {"n": 0}

    def fake_probe(self):
        calls["n"] += 1
        return status_response("InProgress")

    monkeypatch.setattr(OperationPoller, "probe", fake_probe)

    with pytest.raises(PollTimeoutError):
        perform_operation_polling(OperationPoller(api, "op-1"), 10.0, 35.0)

    assert calls["n"] == 4


def test_failed_probe_is_not_an_azure_error(api, respx_mock, no_sleep) -> None:
    respx_mock.get(f"{BASE_URL}/operations/op-1").mock(
        side_effect=httpx.ConnectError("refused")
    )

    with pytest.raises(TransportError) as excinfo:
        perform_operation_polling(OperationPoller(api, "op-1"), 1.0, 60.0)

    assert not isinstance(excinfo.value, AzureError)
