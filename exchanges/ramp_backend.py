"""
HTTP client for a remote routing backend exposing the ``/api`` surface.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Optional

import httpx

from execution.schemas import BasketAllocation


class RampBackendError(RuntimeError):
    """Raised when the backend cannot be reached or answers with an error."""

    def __init__(self, message: str, payload: Optional[dict] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class RampBackendClient:
    """Thin JSON client mirroring the service routes."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        if not base_url:
            raise ValueError("base_url is required for the ramp backend client")
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def health(self) -> dict:
        return self._request("GET", "/api/health")

    def quote(self, amount_usd: float) -> dict:
        return self._request("POST", "/api/quote", json_body={"amountUsd": amount_usd})

    def route_order(
        self,
        token_address: str,
        amount_usd: float,
        *,
        recipient: str | None = None,
        do_on_chain: bool = False,
    ) -> dict:
        body: Dict[str, Any] = {
            "tokenAddress": token_address,
            "amountUsd": amount_usd,
            "doOnChain": do_on_chain,
        }
        if recipient:
            body["recipient"] = recipient
        return self._request("POST", "/api/route-order", json_body=body)

    def execute_basket(
        self,
        allocations: Iterable[BasketAllocation],
        total_usd: float,
        *,
        fund_token_address: str | None = None,
        recipient: str | None = None,
        do_on_chain: bool = False,
    ) -> dict:
        body: Dict[str, Any] = {
            "allocations": [allocation.to_payload() for allocation in allocations],
            "totalUsd": total_usd,
            "doOnChain": do_on_chain,
        }
        if fund_token_address:
            body["fundTokenAddress"] = fund_token_address
        if recipient:
            body["recipient"] = recipient
        return self._request("POST", "/api/execute-basket", json_body=body)

    def list_txs(self) -> List[dict]:
        payload = self._request("GET", "/api/txs")
        txs = payload.get("txs") or []
        if not isinstance(txs, list):
            raise RampBackendError("Backend /api/txs returned a non-list txs field", payload=payload)
        return txs

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: Literal["GET", "POST"],
        path: str,
        json_body: Optional[dict] = None,
    ) -> dict:
        try:
            response = self._client.request(method, path, json=json_body)
        except httpx.HTTPError as exc:
            raise RampBackendError(f"Backend request {method} {path} failed: {exc}") from exc
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {"raw": response.text}
            raise RampBackendError(
                f"Request failed {response.status_code} {response.reason_phrase}: "
                f"{payload.get('detail') if isinstance(payload, dict) else payload}",
                payload=payload if isinstance(payload, dict) else {"raw": payload},
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RampBackendError(
                f"Backend {method} {path} returned a non-JSON body: {response.text[:200]!r}",
                payload={"raw": response.text},
            ) from exc
        if not isinstance(payload, dict):
            raise RampBackendError(
                f"Backend {method} {path} returned unexpected payload type {type(payload).__name__}",
                payload={"raw": payload},
            )
        return payload
