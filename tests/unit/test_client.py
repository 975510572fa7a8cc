r"""Unit tests for RequestClient."""

from __future__ import annotations

import logging
import threading
from unittest.mock import Mock

import httpx
import pytest

from sdkretry import RequestClient
from sdkretry.callbacks import CallbackConfig, FailureInfo, RetryInfo
from sdkretry.client import METHOD_OVERRIDE_HEADER
from sdkretry.core import DEFAULT_RETRY_CONFIG, RetryConfig
from sdkretry.exceptions import (
    ErrorKind,
    NonRetryable,
    ParseFailure,
    RetryExhausted,
    TransportFailure,
    UnsuccessfulResponse,
)
from sdkretry.retry import CredentialRefreshGate, StaticCredentialSource
from sdkretry.transport import HttpxTransport
from sdkretry.utils.clock import SystemSleeper, cancellation_scope
from sdkretry.utils.structured_logging import correlation_scope, get_correlation_id
from tests.helpers import (
    TEST_URL,
    FixedClock,
    RecordingSleeper,
    RotatingCredentialSource,
    ScriptedTransport,
    make_client,
)


def make_config(sleeper: RecordingSleeper, **kwargs: object) -> RetryConfig:
    return RetryConfig(sleeper=sleeper, clock=FixedClock(1000), **kwargs)


###################################
#     Tests for RequestClient     #
###################################


def test_request_client_defaults() -> None:
    """Test a client without arguments uses the SDK-wide policy."""
    with RequestClient() as client:
        assert client.config is DEFAULT_RETRY_CONFIG
        assert isinstance(client.transport, HttpxTransport)


def test_request_client_closes_owned_transport() -> None:
    """Test the owned transport is closed on exit."""
    client = RequestClient()
    transport = client.transport
    with client:
        pass
    assert transport._client.is_closed


def test_request_client_keeps_external_transport_open(sleeper: RecordingSleeper) -> None:
    """Test an external transport is not closed on exit."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(transport, make_config(sleeper)):
        pass
    assert not transport.closed


def test_request_client_success(sleeper: RecordingSleeper) -> None:
    """Test a successful response is returned after one attempt."""
    transport = ScriptedTransport(httpx.Response(200, text="ok"))
    with make_client(transport, make_config(sleeper, max_retries=3)) as client:
        response = client.get(TEST_URL)

    assert response.text == "ok"
    assert transport.attempts == 1
    assert sleeper.sleeps == []


def test_request_client_redirect_is_success(sleeper: RecordingSleeper) -> None:
    """Test 3xx responses are returned as is."""
    transport = ScriptedTransport(httpx.Response(304))
    with make_client(transport, make_config(sleeper, max_retries=3)) as client:
        assert client.get(TEST_URL).status_code == 304


def test_request_client_status_not_retryable(sleeper: RecordingSleeper) -> None:
    """Test a status outside the retry set fails after one attempt."""
    transport = ScriptedTransport(httpx.Response(404, text="missing"))
    config = make_config(sleeper, max_retries=4, retry_status_codes={500, 503})
    with make_client(transport, config) as client, pytest.raises(NonRetryable) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 1
    assert sleeper.sleeps == []
    error = exc_info.value
    assert isinstance(error, UnsuccessfulResponse)
    assert error.status_code == 404
    assert error.kind == ErrorKind.NOT_FOUND
    assert error.body == "missing"
    assert error.method == "GET"
    assert error.url == TEST_URL
    assert isinstance(error.cause, httpx.HTTPStatusError)
    assert error.cause.response is error.response
    assert error.__cause__ is error.cause


def test_request_client_retries_with_backoff(sleeper: RecordingSleeper) -> None:
    """Test max_retries=4 on 503 makes 5 attempts with growing waits."""
    transport = ScriptedTransport(httpx.Response(503))
    config = make_config(sleeper, max_retries=4, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(RetryExhausted) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 5
    assert sleeper.sleeps == [500, 1000, 2000, 4000]
    assert exc_info.value.status_code == 503
    assert exc_info.value.kind == ErrorKind.UNAVAILABLE
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)
    assert exc_info.value.cause.response.status_code == 503
    assert exc_info.value.__cause__ is exc_info.value.cause


@pytest.mark.parametrize("max_retries", [0, 1, 2, 6])
def test_request_client_total_attempts(sleeper: RecordingSleeper, max_retries: int) -> None:
    """Test max_retries=N makes N+1 attempts and N sleeps."""
    transport = ScriptedTransport(httpx.Response(500))
    config = make_config(sleeper, max_retries=max_retries, retry_status_codes={500})
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert transport.attempts == max_retries + 1
    assert len(sleeper.sleeps) == max_retries


def test_request_client_backoff_capped(sleeper: RecordingSleeper) -> None:
    """Test waits are capped at max_interval_millis."""
    transport = ScriptedTransport(httpx.Response(503))
    config = make_config(
        sleeper, max_retries=5, retry_status_codes={503}, max_interval_millis=3000
    )
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert sleeper.sleeps == [500, 1000, 2000, 3000, 3000]


def test_request_client_recovers(sleeper: RecordingSleeper) -> None:
    """Test a transient failure followed by a success."""
    transport = ScriptedTransport(httpx.Response(503), httpx.Response(503), httpx.Response(200))
    config = make_config(sleeper, max_retries=4, retry_status_codes={503})
    with make_client(transport, config) as client:
        assert client.get(TEST_URL).status_code == 200

    assert transport.attempts == 3
    assert sleeper.sleeps == [500, 1000]


def test_request_client_retry_after_seconds(sleeper: RecordingSleeper) -> None:
    """Test Retry-After seconds are used for every wait."""
    transport = ScriptedTransport(httpx.Response(503, headers={"Retry-After": "2"}))
    config = make_config(sleeper, max_retries=3, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert sleeper.sleeps == [2000, 2000, 2000]


def test_request_client_retry_after_http_date(sleeper: RecordingSleeper) -> None:
    """Test an HTTP-date 30 seconds ahead waits 30 seconds."""
    transport = ScriptedTransport(
        httpx.Response(503, headers={"Retry-After": "Thu, 01 Jan 1970 00:00:31 GMT"})
    )
    config = make_config(sleeper, max_retries=2, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert sleeper.sleeps == [30000, 30000]


def test_request_client_retry_after_too_long(sleeper: RecordingSleeper) -> None:
    """Test a Retry-After beyond the cap is not retried."""
    transport = ScriptedTransport(httpx.Response(503, headers={"Retry-After": "121"}))
    config = make_config(
        sleeper, max_retries=4, retry_status_codes={503}, max_interval_millis=120000
    )
    with make_client(transport, config) as client, pytest.raises(NonRetryable) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 1
    assert sleeper.sleeps == []
    assert exc_info.value.headers["Retry-After"] == "121"


def test_request_client_retry_after_invalid(sleeper: RecordingSleeper) -> None:
    """Test an invalid Retry-After behaves like a missing header."""
    transport = ScriptedTransport(httpx.Response(503, headers={"Retry-After": "later"}))
    config = make_config(sleeper, max_retries=3, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert sleeper.sleeps == [500, 1000, 2000]


def test_request_client_io_failure_retried(sleeper: RecordingSleeper) -> None:
    """Test I/O failures are retried when enabled."""
    transport = ScriptedTransport(httpx.ConnectError("refused"), httpx.Response(200))
    config = make_config(sleeper, max_retries=2, retry_on_io_exceptions=True)
    with make_client(transport, config) as client:
        assert client.get(TEST_URL).status_code == 200

    assert transport.attempts == 2
    assert sleeper.sleeps == [500]


def test_request_client_io_failure_not_retried(sleeper: RecordingSleeper) -> None:
    """Test I/O failures raise TransportFailure when not retried."""
    cause = httpx.ConnectError("refused")
    transport = ScriptedTransport(cause)
    config = make_config(sleeper, max_retries=2, retry_on_io_exceptions=False)
    with make_client(transport, config) as client, pytest.raises(TransportFailure) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 1
    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause
    assert exc_info.value.kind == ErrorKind.UNAVAILABLE
    assert exc_info.value.response is None


def test_request_client_io_failure_exhausted(sleeper: RecordingSleeper) -> None:
    """Test repeated I/O failures end with RetryExhausted."""
    transport = ScriptedTransport(httpx.ReadTimeout("slow"))
    config = make_config(sleeper, max_retries=2, retry_on_io_exceptions=True)
    with make_client(transport, config) as client, pytest.raises(RetryExhausted) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 3
    assert sleeper.sleeps == [500, 1000]
    assert exc_info.value.kind == ErrorKind.DEADLINE_EXCEEDED
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


def test_request_client_mixed_causes_share_budget(sleeper: RecordingSleeper) -> None:
    """Test I/O failures and error responses share one budget."""
    transport = ScriptedTransport(
        httpx.ConnectError("refused"),
        httpx.Response(503),
        httpx.ConnectError("refused"),
        httpx.Response(503),
    )
    config = make_config(
        sleeper, max_retries=3, retry_status_codes={503}, retry_on_io_exceptions=True
    )
    with make_client(transport, config) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    assert transport.attempts == 4
    assert sleeper.sleeps == [500, 1000, 2000]


def test_request_client_same_request_resent(sleeper: RecordingSleeper) -> None:
    """Test every attempt re-sends the same request."""
    transport = ScriptedTransport(httpx.Response(503), httpx.Response(200))
    config = make_config(sleeper, max_retries=1, retry_status_codes={503})
    with make_client(transport, config) as client:
        client.post(TEST_URL, headers={"Content-Type": "application/json"}, body='{"a": 1}')

    first, second = transport.requests
    assert first is second
    assert first.method == "POST"
    assert first.content == b'{"a": 1}'
    assert first.headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("method", ["get", "delete"])
def test_request_client_methods_without_body(sleeper: RecordingSleeper, method: str) -> None:
    """Test the convenience methods without body."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(transport, make_config(sleeper)) as client:
        getattr(client, method)(TEST_URL)
    assert transport.requests[0].method == method.upper()


@pytest.mark.parametrize("method", ["post", "put", "patch"])
def test_request_client_methods_with_body(sleeper: RecordingSleeper, method: str) -> None:
    """Test the convenience methods with body."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(transport, make_config(sleeper)) as client:
        getattr(client, method)(TEST_URL, body=b"payload")
    assert transport.requests[0].method == method.upper()
    assert transport.requests[0].content == b"payload"


def test_request_client_execute_lowercase_method(sleeper: RecordingSleeper) -> None:
    """Test the method name is upper-cased."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(transport, make_config(sleeper)) as client:
        client.execute("get", TEST_URL)
    assert transport.requests[0].method == "GET"


###########################################
#     Tests for HTTP method override      #
###########################################


def test_request_client_method_override(sleeper: RecordingSleeper) -> None:
    """Test unsupported verbs are tunnelled through POST."""
    transport = ScriptedTransport(
        httpx.Response(200), supported_methods={"GET", "POST", "PUT", "DELETE"}
    )
    with make_client(transport, make_config(sleeper)) as client:
        client.patch(TEST_URL, headers={"X-Custom": "1"}, body=b"delta")

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.headers[METHOD_OVERRIDE_HEADER] == "PATCH"
    assert request.headers["X-Custom"] == "1"
    assert request.content == b"delta"


def test_request_client_no_override_when_supported(sleeper: RecordingSleeper) -> None:
    """Test supported verbs are sent natively."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(transport, make_config(sleeper)) as client:
        client.patch(TEST_URL, body=b"delta")

    assert transport.requests[0].method == "PATCH"
    assert METHOD_OVERRIDE_HEADER not in transport.requests[0].headers


def test_request_client_override_error_reports_logical_method(sleeper: RecordingSleeper) -> None:
    """Test terminal errors report the verb the caller asked for."""
    transport = ScriptedTransport(httpx.Response(400), supported_methods={"GET", "POST"})
    with make_client(transport, make_config(sleeper)) as client, pytest.raises(NonRetryable) as exc_info:
        client.execute("PATCH", TEST_URL)
    assert exc_info.value.method == "PATCH"


########################################
#     Tests for credential refresh     #
########################################


def test_request_client_credentials_attached(sleeper: RecordingSleeper) -> None:
    """Test credentials are attached to the first attempt."""
    transport = ScriptedTransport(httpx.Response(200))
    with make_client(
        transport, make_config(sleeper), credentials=StaticCredentialSource("token")
    ) as client:
        client.get(TEST_URL)
    assert transport.sent_headers[0]["Authorization"] == "Bearer token"


def test_request_client_credential_refresh_retry(sleeper: RecordingSleeper) -> None:
    """Test a refreshed credential is retried immediately."""
    transport = ScriptedTransport(httpx.Response(401), httpx.Response(200))
    gate = CredentialRefreshGate(
        RotatingCredentialSource("stale", "fresh"), refresh_status_codes={401}
    )
    config = make_config(sleeper, max_retries=2)
    with make_client(transport, config, credentials=gate) as client:
        assert client.get(TEST_URL).status_code == 200

    assert transport.attempts == 2
    assert sleeper.sleeps == []
    assert transport.sent_headers[0]["Authorization"] == "Bearer stale"
    assert transport.sent_headers[1]["Authorization"] == "Bearer fresh"


def test_request_client_credential_refresh_then_backoff(sleeper: RecordingSleeper) -> None:
    """Test one refresh retry followed by backoff retries, bounded by
    max_retries."""
    transport = ScriptedTransport(httpx.Response(503))
    source = RotatingCredentialSource("initial", "retry")
    config = make_config(sleeper, max_retries=4, retry_status_codes={503})
    with make_client(transport, config, credentials=source) as client, pytest.raises(
        RetryExhausted
    ):
        client.get(TEST_URL)

    assert transport.attempts == 5
    assert sleeper.sleeps == [500, 1000, 2000]
    assert [headers["Authorization"] for headers in transport.sent_headers] == [
        "Bearer initial"
    ] + ["Bearer retry"] * 4


def test_request_client_credential_refresh_bounded(sleeper: RecordingSleeper) -> None:
    """Test endless refreshes stop at max_retries + 1 attempts."""
    transport = ScriptedTransport(httpx.Response(401))
    source = RotatingCredentialSource("t0", "t1", "t2", "t3", "t4", "t5", "t6")
    config = make_config(sleeper, max_retries=3)
    with make_client(transport, config, credentials=source) as client, pytest.raises(
        RetryExhausted
    ):
        client.get(TEST_URL)

    assert transport.attempts == 4
    assert sleeper.sleeps == []


def test_request_client_credential_refresh_declined(sleeper: RecordingSleeper) -> None:
    """Test an unchanged credential leaves the decision to the policy."""
    transport = ScriptedTransport(httpx.Response(401))
    config = make_config(sleeper, max_retries=3, retry_status_codes={503})
    with make_client(
        transport, config, credentials=StaticCredentialSource("token")
    ) as client, pytest.raises(NonRetryable) as exc_info:
        client.get(TEST_URL)

    assert transport.attempts == 1
    assert exc_info.value.kind == ErrorKind.UNAUTHENTICATED


def test_request_client_credentials_not_refreshed_on_io_failure(
    sleeper: RecordingSleeper,
) -> None:
    """Test I/O failures do not trigger a refresh."""
    transport = ScriptedTransport(httpx.ConnectError("refused"))
    source = RotatingCredentialSource("old", "new")
    config = make_config(sleeper, max_retries=1, retry_on_io_exceptions=True)
    with make_client(transport, config, credentials=source) as client, pytest.raises(
        RetryExhausted
    ):
        client.get(TEST_URL)

    assert source.refresh_count == 0


###################################
#     Tests for cancellation      #
###################################


def test_request_client_interrupted_sleep() -> None:
    """Test an interrupted wait ends the request without further
    attempts."""
    sleeper = RecordingSleeper(interrupt_on=2)
    transport = ScriptedTransport(httpx.Response(503))
    config = make_config(sleeper, max_retries=4, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(InterruptedError):
        client.get(TEST_URL)

    assert sleeper.sleeps == [500, 1000]
    assert transport.attempts == 2


def test_request_client_cancel_event() -> None:
    """Test a set cancel event interrupts the backoff of the request."""
    event = threading.Event()
    event.set()
    transport = ScriptedTransport(httpx.Response(503))
    config = RetryConfig(max_retries=4, retry_status_codes={503}, sleeper=SystemSleeper())
    with make_client(transport, config) as client, pytest.raises(InterruptedError):
        client.execute("GET", TEST_URL, cancel_event=event)

    assert transport.attempts == 1


def test_request_client_cancellation_scope() -> None:
    """Test requests issued inside a cancelled scope are interrupted."""
    transport = ScriptedTransport(httpx.Response(503))
    config = RetryConfig(max_retries=4, retry_status_codes={503}, sleeper=SystemSleeper())
    with make_client(transport, config) as client, cancellation_scope() as event:
        event.set()
        with pytest.raises(InterruptedError):
            client.get(TEST_URL)

    assert transport.attempts == 1


def test_request_client_cancellation_is_per_request() -> None:
    """Test cancelling one request leaves a concurrent request and a later
    request sharing the same config unaffected."""
    config = RetryConfig(max_retries=2, retry_status_codes={503}, sleeper=SystemSleeper())
    cancel_event = threading.Event()
    first_attempt_sent = threading.Event()
    results: dict[str, object] = {}

    cancelled_transport = ScriptedTransport(httpx.Response(503))
    cancelled_client = make_client(
        cancelled_transport,
        config,
        callbacks=CallbackConfig(on_request=lambda info: first_attempt_sent.set()),
    )
    concurrent_client = make_client(
        ScriptedTransport(httpx.Response(503), httpx.Response(200, text="ok")), config
    )

    def run_cancelled() -> None:
        try:
            cancelled_client.execute("GET", TEST_URL, cancel_event=cancel_event)
            results["cancelled"] = "completed"
        except InterruptedError:
            results["cancelled"] = "interrupted"

    def run_concurrent() -> None:
        results["concurrent"] = concurrent_client.get(TEST_URL).text

    threads = [threading.Thread(target=run_cancelled), threading.Thread(target=run_concurrent)]
    for thread in threads:
        thread.start()
    assert first_attempt_sent.wait(5)
    cancel_event.set()
    for thread in threads:
        thread.join(10)

    later_client = make_client(
        ScriptedTransport(httpx.Response(503), httpx.Response(200, text="ok")), config
    )
    assert later_client.get(TEST_URL).text == "ok"
    assert results == {"cancelled": "interrupted", "concurrent": "ok"}
    assert cancelled_transport.attempts == 1


##################################
#     Tests for execute_json     #
##################################


def test_request_client_execute_json(sleeper: RecordingSleeper) -> None:
    """Test execute_json decodes the body."""
    transport = ScriptedTransport(httpx.Response(200, json={"items": [1, 2]}))
    with make_client(transport, make_config(sleeper)) as client:
        assert client.execute_json("GET", TEST_URL) == {"items": [1, 2]}


def test_request_client_execute_json_parse_failure(sleeper: RecordingSleeper) -> None:
    """Test an undecodable body raises ParseFailure without retrying."""
    transport = ScriptedTransport(httpx.Response(200, text="<html>"))
    config = make_config(sleeper, max_retries=3, retry_status_codes={503})
    with make_client(transport, config) as client, pytest.raises(ParseFailure) as exc_info:
        client.execute_json("GET", TEST_URL)

    assert transport.attempts == 1
    assert sleeper.sleeps == []
    assert exc_info.value.kind == ErrorKind.UNKNOWN
    assert exc_info.value.message.startswith("Error while parsing HTTP response")
    assert exc_info.value.status_code == 200
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_request_client_execute_json_parse_failure_reported(
    sleeper: RecordingSleeper, caplog: pytest.LogCaptureFixture
) -> None:
    """Test an undecodable body fires on_failure and emits a structured
    record, but no on_success."""
    on_success = Mock()
    on_failure = Mock()
    transport = ScriptedTransport(httpx.Response(503), httpx.Response(200, text="<html>"))
    config = make_config(sleeper, max_retries=3, retry_status_codes={503})
    with caplog.at_level(logging.DEBUG, logger="sdkretry"), make_client(
        transport,
        config,
        callbacks=CallbackConfig(on_success=on_success, on_failure=on_failure),
    ) as client, pytest.raises(ParseFailure) as exc_info:
        client.execute_json("get", TEST_URL)

    on_success.assert_not_called()
    on_failure.assert_called_once()
    info = on_failure.call_args.args[0]
    assert isinstance(info, FailureInfo)
    assert info.error is exc_info.value
    assert info.attempt == 2
    assert info.method == "GET"
    assert info.status_code == 200
    records = [record for record in caplog.records if hasattr(record, "retry_state")]
    assert len(records) == 1
    assert records[0].retry_state == "non_retryable"
    assert records[0].attempts == 2
    assert records[0].status_code == 200


def test_request_client_execute_json_on_success(sleeper: RecordingSleeper) -> None:
    """Test a decodable body fires on_success once."""
    on_success = Mock()
    transport = ScriptedTransport(httpx.Response(200, json=[1]))
    with make_client(
        transport, make_config(sleeper), callbacks=CallbackConfig(on_success=on_success)
    ) as client:
        assert client.execute_json("GET", TEST_URL) == [1]

    on_success.assert_called_once()


####################################
#     Tests for error handling     #
####################################


def test_request_client_custom_error_classifier(sleeper: RecordingSleeper) -> None:
    """Test a custom classifier shapes the terminal error."""
    classifier = Mock(classify=Mock(return_value=(ErrorKind.ABORTED, "custom message")))
    transport = ScriptedTransport(httpx.Response(409))
    with make_client(
        transport, make_config(sleeper), error_classifier=classifier
    ) as client, pytest.raises(NonRetryable) as exc_info:
        client.get(TEST_URL)

    assert exc_info.value.kind == ErrorKind.ABORTED
    assert exc_info.value.message == "custom message"


def test_request_client_broken_error_classifier(sleeper: RecordingSleeper) -> None:
    """Test a failing classifier does not hide the failure."""
    classifier = Mock(classify=Mock(side_effect=RuntimeError("bug")))
    transport = ScriptedTransport(httpx.Response(404))
    with make_client(
        transport, make_config(sleeper), error_classifier=classifier
    ) as client, pytest.raises(NonRetryable) as exc_info:
        client.get(TEST_URL)

    assert exc_info.value.kind == ErrorKind.UNKNOWN
    assert exc_info.value.status_code == 404


def test_request_client_failure_logged(
    sleeper: RecordingSleeper, caplog: pytest.LogCaptureFixture
) -> None:
    """Test terminal failures emit a structured record."""
    transport = ScriptedTransport(httpx.Response(503))
    config = make_config(sleeper, max_retries=1, retry_status_codes={503})
    with caplog.at_level(logging.DEBUG, logger="sdkretry"), make_client(
        transport, config
    ) as client, pytest.raises(RetryExhausted):
        client.get(TEST_URL)

    records = [record for record in caplog.records if hasattr(record, "retry_state")]
    assert len(records) == 1
    assert records[0].retry_state == "exhausted"
    assert records[0].attempts == 2
    assert records[0].status_code == 503


###############################
#     Tests for callbacks     #
###############################


def test_request_client_callbacks(sleeper: RecordingSleeper) -> None:
    """Test lifecycle callbacks are invoked with 1-indexed attempts."""
    on_request, on_retry, on_success, on_failure = Mock(), Mock(), Mock(), Mock()
    transport = ScriptedTransport(httpx.Response(503), httpx.Response(200))
    config = make_config(sleeper, max_retries=2, retry_status_codes={503})
    callbacks = CallbackConfig(
        on_request=on_request, on_retry=on_retry, on_success=on_success, on_failure=on_failure
    )
    with make_client(transport, config, callbacks=callbacks) as client:
        client.get(TEST_URL)

    assert [call.args[0].attempt for call in on_request.call_args_list] == [1, 2]
    on_retry.assert_called_once_with(
        RetryInfo(
            url=TEST_URL,
            method="GET",
            attempt=2,
            max_retries=2,
            wait_millis=500,
            error=None,
            status_code=503,
        )
    )
    assert on_success.call_args.args[0].attempt == 2
    on_failure.assert_not_called()


def test_request_client_on_failure_callback(sleeper: RecordingSleeper) -> None:
    """Test on_failure receives the terminal error."""
    on_failure = Mock()
    transport = ScriptedTransport(httpx.Response(503))
    config = make_config(sleeper, max_retries=1, retry_status_codes={503})
    with make_client(
        transport, config, callbacks=CallbackConfig(on_failure=on_failure)
    ) as client, pytest.raises(RetryExhausted) as exc_info:
        client.get(TEST_URL)

    info = on_failure.call_args.args[0]
    assert isinstance(info, FailureInfo)
    assert info.attempt == 2
    assert info.error is exc_info.value
    assert info.status_code == 503


def test_request_client_refresh_retry_callback_has_no_wait(sleeper: RecordingSleeper) -> None:
    """Test credential refresh retries report a zero wait."""
    on_retry = Mock()
    transport = ScriptedTransport(httpx.Response(401), httpx.Response(200))
    with make_client(
        transport,
        make_config(sleeper, max_retries=1),
        credentials=RotatingCredentialSource("a", "b"),
        callbacks=CallbackConfig(on_retry=on_retry),
    ) as client:
        client.get(TEST_URL)

    assert on_retry.call_args.args[0].wait_millis == 0


######################################
#     Tests for correlation IDs      #
######################################


def test_request_client_correlation_scope(sleeper: RecordingSleeper) -> None:
    """Test every attempt of a request shares one correlation ID."""
    seen: list[str | None] = []
    transport = ScriptedTransport(httpx.Response(503), httpx.Response(200))
    config = make_config(sleeper, max_retries=1, retry_status_codes={503})
    callbacks = CallbackConfig(on_request=lambda info: seen.append(get_correlation_id()))
    with make_client(transport, config, callbacks=callbacks) as client:
        client.get(TEST_URL)

    assert len(seen) == 2
    assert seen[0] is not None
    assert seen[0] == seen[1]
    assert get_correlation_id() is None


def test_request_client_reuses_caller_correlation_id(sleeper: RecordingSleeper) -> None:
    """Test a caller supplied correlation ID is kept."""
    seen: list[str | None] = []
    transport = ScriptedTransport(httpx.Response(200))
    callbacks = CallbackConfig(on_request=lambda info: seen.append(get_correlation_id()))
    with make_client(transport, make_config(sleeper), callbacks=callbacks) as client, correlation_scope(
        "batch-1"
    ):
        client.get(TEST_URL)
    assert seen == ["batch-1"]
