"""Unit tests for the remote ledger client"""

import json
import httpx
import pytest
from datetime import date
from decimal import Decimal
from billing_gateway.domain.exceptions import ContractNotFoundError, LedgerError
from billing_gateway.domain.models import Installment
from billing_gateway.infrastructure.clients.ledger import LedgerClient

BRACKETS_PAYLOAD = {
    "brackets": [
        {"name": "A", "year": 2024, "rate": 10.0, "min_units": 1, "max_units": 50, "hours": 2},
        {"name": "B", "year": 2024, "rate": "15.00", "min_units": 51, "max_units": None},
    ]
}


def _client(handler, clock=None) -> LedgerClient:
    client = LedgerClient(base_url="http://ledger.test", transport=httpx.MockTransport(handler), clock=clock)
    client.backoff_base = 0
    return client


async def test_list_brackets_parses_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=BRACKETS_PAYLOAD)

    brackets = await _client(handler).list_brackets(2024)

    assert seen[0].url.path == "/brackets"
    assert seen[0].url.params["year"] == "2024"
    assert brackets[0].rate == Decimal("10.0")
    assert brackets[0].hours == Decimal("2")
    assert brackets[1].max_units is None
    assert brackets[1].hours == Decimal("1")


async def test_list_brackets_rejects_malformed_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"brackets": [{"year": 2024}]})

    with pytest.raises(LedgerError):
        await _client(handler).list_brackets()


async def test_reads_retry_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=BRACKETS_PAYLOAD)

    brackets = await _client(handler).list_brackets()

    assert len(calls) == 3
    assert len(brackets) == 2


async def test_reads_give_up_after_max_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    client.max_retries = 3

    with pytest.raises(LedgerError):
        await client.list_brackets()
    assert len(calls) == 3


async def test_client_errors_fail_fast():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400)

    with pytest.raises(LedgerError):
        await _client(handler).list_brackets()
    assert len(calls) == 1


async def test_current_year_for(clock):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/contracts/1":
            return httpx.Response(200, json={"id": 1, "activation_date": "2022-05-01"})
        if request.url.path == "/contracts/2":
            return httpx.Response(200, json={"id": 2, "activation_date": None})
        return httpx.Response(404)

    client = _client(handler, clock=clock)

    assert await client.current_year_for(1) == 2022
    assert await client.current_year_for(2) == 2024
    with pytest.raises(ContractNotFoundError):
        await client.current_year_for(3)


async def test_save_schedule_puts_installments():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    installments = [Installment(date(2024, 1, 15), Decimal("100.00"), Decimal("1200.00"))]
    await _client(handler).save_schedule(5, installments)

    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/contracts/5/schedule"
    assert json.loads(seen[0].content) == {
        "installments": [{"due_date": "2024-01-15", "percentage": 100.0, "amount": 1200.0}]
    }


async def test_save_schedule_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    installments = [Installment(date(2024, 1, 15), Decimal("100.00"), Decimal("10.00"))]
    with pytest.raises(httpx.HTTPStatusError):
        await _client(handler).save_schedule(5, installments)
    assert len(calls) == 1
