"""
HTTP relayer settlement executor.

The relayer holds the signing key for the settlement token contract and exposes
``mint`` and ``transfer`` over REST. Requests are authenticated with an API key
and an HMAC-SHA256 signature over ``timestamp + method + path + body``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Literal, Optional

import httpx

from exchanges.base_client import RelayerCredentials, SettlementExecutor

MINT_PATH = "/api/v1/mint"
TRANSFER_PATH = "/api/v1/transfer"


class RelayerClientError(RuntimeError):
    """Raised when the relayer rejects a settlement request."""

    def __init__(self, message: str, payload: Optional[dict] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class RelayerSettlementClient(SettlementExecutor):
    """Settlement executor backed by the REST relayer."""

    name = "relayer"

    def __init__(
        self,
        base_url: str,
        *,
        address: str = "",
        credentials: RelayerCredentials | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.address = address
        self._credentials = credentials
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self._base_url and self._credentials and self._credentials.api_key)

    # ------------------------------------------------------------------
    # SettlementExecutor API
    # ------------------------------------------------------------------
    def mint(self, asset_id: str, to_address: str, amount: str) -> str:
        return self._submit(MINT_PATH, asset_id, to_address, amount)

    def transfer(self, asset_id: str, to_address: str, amount: str) -> str:
        return self._submit(TRANSFER_PATH, asset_id, to_address, amount)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _submit(self, path: str, asset_id: str, to_address: str, amount: str) -> str:
        if not to_address:
            raise ValueError("A recipient address is required for relayer settlement")
        payload = self._request(
            "POST",
            path,
            json_body={"tokenAddress": asset_id, "to": to_address, "amount": amount},
        )
        tx_hash = payload.get("txHash")
        if not tx_hash:
            raise RelayerClientError("Relayer response did not include a txHash", payload=payload)
        return str(tx_hash)

    def _request(
        self,
        method: Literal["GET", "POST"],
        path: str,
        json_body: Optional[dict] = None,
    ) -> dict:
        if self._credentials is None:
            raise RuntimeError("Relayer client has no credentials configured")

        timestamp = datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        body_text = json.dumps(json_body, separators=(",", ":")) if json_body else ""
        message = f"{timestamp}{method}{path}{body_text}"

        headers = {
            "X-RELAYER-KEY": self._credentials.api_key,
            "X-RELAYER-TIMESTAMP": timestamp,
            "X-RELAYER-SIGN": self._sign(message, self._credentials.api_secret),
            "Content-Type": "application/json",
        }
        response = self._client.request(
            method,
            path,
            content=body_text if body_text else None,
            headers=headers,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("ok"):
            error = payload.get("error") if isinstance(payload, dict) else None
            raise RelayerClientError(
                f"Relayer error: {error or 'unknown failure'}",
                payload=payload if isinstance(payload, dict) else {"raw": payload},
            )
        return payload

    @staticmethod
    def _sign(message: str, secret_key: str) -> str:
        mac = hmac.new(
            secret_key.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        )
        return base64.b64encode(mac.digest()).decode("utf-8")


def build_relayer_client(
    base_url: str,
    *,
    api_key: str,
    api_secret: str,
    address: str = "",
    timeout: float = 10.0,
) -> Optional[RelayerSettlementClient]:
    """Return a configured client, or None when the relayer is not set up."""
    if not base_url or not api_key or not api_secret:
        return None
    return RelayerSettlementClient(
        base_url,
        address=address,
        credentials=RelayerCredentials(api_key=api_key, api_secret=api_secret),
        timeout=timeout,
    )
