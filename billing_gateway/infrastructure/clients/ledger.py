"""Remote ledger HTTP client with exponential backoff on reads"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from billing_gateway.config import settings
from billing_gateway.domain.exceptions import ContractNotFoundError, LedgerError
from billing_gateway.domain.models import Bracket, Installment
from billing_gateway.domain.ports import Clock
from billing_gateway.infrastructure.observability.metrics import ledger_latency_histogram, ledger_failure_counter
from billing_gateway.utils.date_utils import SystemClock


def installment_payload(installment: Installment) -> Dict[str, Any]:
    """Wire shape of a persisted installment: ISO date, two-decimal numbers"""
    return {
        "due_date": installment.due_date.isoformat(),
        "percentage": float(installment.percentage),
        "amount": float(installment.amount),
    }


def parse_bracket(data: Dict[str, Any]) -> Bracket:
    return Bracket(
        name=data["name"],
        year=int(data["year"]),
        rate=Decimal(str(data["rate"])),
        min_units=int(data.get("min_units") or 1),
        max_units=int(data["max_units"]) if data.get("max_units") else None,
        hours=Decimal(str(data.get("hours") or 1)),
        description=data.get("description") or "",
    )


class LedgerClient:
    """Client for a remote ledger service owning brackets, contracts and schedules"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock | None = None,
    ):
        self.base_url = base_url or settings.ledger_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.ledger_max_retries
        self.backoff_base = settings.ledger_backoff_base
        self.transport = transport
        self.clock = clock or SystemClock()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET with retry.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx errors and network failures; 4xx fail immediately
        - Raises LedgerError after the last attempt
        """
        attempt = 0
        async with self._client() as client:
            while True:
                try:
                    with ledger_latency_histogram.time():
                        response = await client.get(path, params=params)
                        response.raise_for_status()
                        return response.json()

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    ledger_failure_counter.inc()

                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        raise LedgerError(f"Ledger GET {path} rejected: {e.response.status_code}") from e

                    if attempt >= self.max_retries:
                        raise LedgerError(f"Ledger GET {path} failed after {attempt} attempts: {e}") from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

    async def list_brackets(self, year: Optional[int] = None) -> List[Bracket]:
        params = {"year": year} if year is not None else None
        data = await self._get("/brackets", params=params)
        try:
            return [parse_bracket(item) for item in data.get("brackets", [])]
        except (KeyError, ValueError, TypeError) as e:
            raise LedgerError(f"Invalid bracket data from ledger: {e}") from e

    async def current_year_for(self, contract_id: int) -> int:
        """Activation year of the contract; current year when it has none"""
        try:
            data = await self._get(f"/contracts/{contract_id}")
        except LedgerError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                raise ContractNotFoundError(f"Contract {contract_id} not found") from cause
            raise

        activation = data.get("activation_date")
        if not activation:
            return self.clock.today().year
        try:
            return date.fromisoformat(activation).year
        except ValueError as e:
            raise LedgerError(f"Invalid activation date from ledger: {activation!r}") from e

    async def save_schedule(self, contract_id: int, installments: List[Installment]) -> None:
        """
        Replace the contract's schedule on the ledger.

        Single attempt: httpx errors reach the caller unmodified and the
        retry decision stays with them.
        """
        payload = {"installments": [installment_payload(inst) for inst in installments]}
        async with self._client() as client:
            try:
                with ledger_latency_histogram.time():
                    response = await client.put(f"/contracts/{contract_id}/schedule", json=payload)
                    response.raise_for_status()
            except (httpx.HTTPStatusError, httpx.RequestError):
                ledger_failure_counter.inc()
                raise
