import base64
import json
import logging
from unittest.mock import patch

import pytest
import requests
from requests import PreparedRequest, Response

from blockrun_llm.clients.requests import (
    wrapRequestsWithPayment,
    x402_http_adapter,
    x402_requests,
    x402HTTPAdapter,
)
from blockrun_llm.exact import decode_payment
from blockrun_llm.exceptions import PaymentError, PaymentRejectedError
from blockrun_llm.spending import Spending

URL = "https://blockrun.ai/api/v1/chat/completions"


def make_response(status_code, content=b"", headers=None):
    response = Response()
    response.status_code = status_code
    response._content = content
    if headers:
        response.headers.update(headers)
    return response


@pytest.fixture
def adapter(client):
    return x402_http_adapter(client)


@pytest.fixture
def request_():
    request = PreparedRequest()
    request.prepare(
        "POST",
        URL,
        data=b'{"model": "openai/gpt-4o"}',
        headers={"Content-Type": "application/json"},
    )
    return request


@pytest.fixture
def payment_required(challenge_header):
    return make_response(
        402,
        b'{"error": "Payment Required"}',
        {"payment-required": challenge_header},
    )


@pytest.fixture
def receipt_header():
    receipt = {"success": True, "transaction": "0xabc", "network": "eip155:8453", "payer": "0x1"}
    return base64.b64encode(json.dumps(receipt).encode()).decode()


def test_adapter_send_success(adapter, request_):
    with patch(
        "requests.adapters.HTTPAdapter.send",
        return_value=make_response(200, b"success"),
    ) as mock_send:
        response = adapter.send(request_)

    assert response.status_code == 200
    assert response.content == b"success"
    mock_send.assert_called_once()
    assert adapter.client.get_spending() == Spending(total_usd=0.0, calls=0)


def test_adapter_send_non_402(adapter, request_):
    with patch(
        "requests.adapters.HTTPAdapter.send",
        return_value=make_response(404, b"not found"),
    ) as mock_send:
        response = adapter.send(request_)

    assert response.status_code == 404
    assert response.content == b"not found"
    mock_send.assert_called_once()


def test_adapter_payment_flow(adapter, request_, payment_required, receipt_header, address, pay_to):
    paid = make_response(200, b'{"ok": true}', {"payment-response": receipt_header})

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[payment_required, paid],
    ) as mock_send:
        response = adapter.send(request_, timeout=30)

    assert response is paid
    assert mock_send.call_count == 2

    retry_request = mock_send.call_args_list[1][0][0]
    assert retry_request is not request_
    assert retry_request.body == request_.body
    assert retry_request.headers["Content-Type"] == "application/json"
    assert mock_send.call_args_list[1][1]["timeout"] == 30
    assert "PAYMENT-SIGNATURE" not in request_.headers

    payload = decode_payment(retry_request.headers["PAYMENT-SIGNATURE"])
    assert payload.accepted.amount == "500000"
    assert payload.accepted.network == "eip155:8453"
    assert payload.payload.authorization.from_ == address
    assert payload.payload.authorization.to == pay_to
    authorization = payload.payload.authorization
    assert int(authorization.valid_before) - int(authorization.valid_after) == 900

    assert adapter.client.get_spending() == Spending(total_usd=0.5, calls=1)


def test_adapter_payment_from_body(adapter, request_, challenge):
    initial = make_response(402, json.dumps(challenge).encode())

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[initial, make_response(200, b"{}")],
    ) as mock_send:
        response = adapter.send(request_)

    assert response.status_code == 200
    assert mock_send.call_count == 2
    retry_request = mock_send.call_args_list[1][0][0]
    assert decode_payment(retry_request.headers["PAYMENT-SIGNATURE"]).accepted.amount == "500000"


def test_adapter_payment_rejected(adapter, request_, payment_required):
    rejected = make_response(402, b'{"error": "insufficient funds"}')

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[payment_required, rejected],
    ) as mock_send:
        with pytest.raises(PaymentRejectedError):
            adapter.send(request_)

    assert mock_send.call_count == 2
    assert adapter.client.get_spending() == Spending(total_usd=0.0, calls=0)


def test_adapter_rejected_even_with_new_challenge(adapter, request_, payment_required, challenge_header):
    again = make_response(402, b"", {"payment-required": challenge_header})

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[payment_required, again],
    ) as mock_send:
        with pytest.raises(PaymentRejectedError):
            adapter.send(request_)

    assert mock_send.call_count == 2


def test_adapter_402_without_challenge(adapter, request_):
    initial = make_response(402, b"payment required")

    with patch("requests.adapters.HTTPAdapter.send", return_value=initial) as mock_send:
        response = adapter.send(request_)

    assert response is initial
    mock_send.assert_called_once()


def test_adapter_empty_accepts(adapter, request_, challenge):
    challenge["accepts"] = []
    header = base64.b64encode(json.dumps(challenge).encode()).decode()
    initial = make_response(402, b"", {"payment-required": header})

    with patch("requests.adapters.HTTPAdapter.send", return_value=initial) as mock_send:
        with pytest.raises(PaymentError):
            adapter.send(request_)

    mock_send.assert_called_once()


def test_adapter_unparsable_challenge(adapter, request_):
    initial = make_response(402, b"", {"payment-required": "not base64!"})

    with patch("requests.adapters.HTTPAdapter.send", return_value=initial) as mock_send:
        with pytest.raises(PaymentError):
            adapter.send(request_)

    mock_send.assert_called_once()


def test_adapter_wraps_unexpected_errors(adapter, request_, payment_required):
    with patch.object(adapter.client, "create_payment_header", side_effect=RuntimeError("boom")):
        with patch("requests.adapters.HTTPAdapter.send", return_value=payment_required):
            with pytest.raises(PaymentError, match="boom"):
                adapter.send(request_)


def test_adapter_error_after_payment(adapter, request_, payment_required):
    failed = make_response(500, b"internal error")

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[payment_required, failed],
    ):
        response = adapter.send(request_)

    assert response is failed
    assert adapter.client.get_spending() == Spending(total_usd=0.0, calls=0)


def test_adapter_unreadable_receipt(adapter, request_, payment_required, caplog):
    paid = make_response(200, b"{}", {"payment-response": "%%%"})

    with caplog.at_level(logging.WARNING, logger="blockrun_llm"):
        with patch(
            "requests.adapters.HTTPAdapter.send",
            side_effect=[payment_required, paid],
        ):
            response = adapter.send(request_)

    assert response.status_code == 200
    assert adapter.client.get_spending().calls == 1
    assert "Unreadable payment response header" in caplog.text


def test_adapter_logs_never_contain_secrets(adapter, request_, payment_required, private_key, caplog):
    paid = make_response(200, b"{}")

    with caplog.at_level(logging.DEBUG, logger="blockrun_llm"):
        with patch(
            "requests.adapters.HTTPAdapter.send",
            side_effect=[payment_required, paid],
        ) as mock_send:
            adapter.send(request_)

    payload = decode_payment(mock_send.call_args_list[1][0][0].headers["PAYMENT-SIGNATURE"])
    assert "Paid 0.500000 USD" in caplog.text
    assert private_key.removeprefix("0x") not in caplog.text
    assert payload.payload.signature not in caplog.text
    assert payload.payload.authorization.nonce not in caplog.text


def test_wrap_requests_with_payment(client):
    session = requests.Session()

    wrapped = wrapRequestsWithPayment(session, client)

    assert wrapped is session
    assert isinstance(session.get_adapter("https://blockrun.ai"), x402HTTPAdapter)
    assert isinstance(session.get_adapter("http://localhost"), x402HTTPAdapter)


def test_session_payment_flow(client, payment_required):
    session = x402_requests(client)
    paid = make_response(200, b'{"ok": true}')

    with patch(
        "requests.adapters.HTTPAdapter.send",
        side_effect=[payment_required, paid],
    ) as mock_send:
        response = session.post(URL, data=b'{"model": "openai/gpt-4o"}')

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert mock_send.call_count == 2
    first, retry = (call[0][0] for call in mock_send.call_args_list)
    assert retry.body == first.body == b'{"model": "openai/gpt-4o"}'
    assert "PAYMENT-SIGNATURE" in retry.headers
    assert "PAYMENT-SIGNATURE" not in first.headers
    assert client.get_spending() == Spending(total_usd=0.5, calls=1)
