"""Async client for the EcoFlow IoT open API."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from .auth import EcoFlowSigner, canonical_items, create_nonce, create_timestamp
from .config import Settings
from .constants import (
    ECOFLOW_BASE,
    JSON_CONTENT_TYPE,
    PATH_DEVICE_LIST,
    PATH_DEVICE_QUOTA,
    PATH_DEVICE_QUOTA_ALL,
)
from .errors import EcoFlowAPIError, EcoFlowError, format_ecoflow_error
from .schemas import ApiResponse, Device

LOGGER = logging.getLogger(__name__)

SET_PARAMS_SUCCESS = "Parameters set successfully."


def _redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {key: ("<redacted>" if key == "sign" else value) for key, value in headers.items()}


@dataclass
class EcoFlowClient:
    """Thin asynchronous wrapper around the EcoFlow device endpoints.

    Use it as an async context manager, or hand in a pre-built
    ``httpx.AsyncClient`` which then stays owned by the caller.
    """

    access_key: str
    secret_key: str = field(repr=False)
    base_url: str = ECOFLOW_BASE
    timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 1.0
    client: httpx.AsyncClient | None = field(default=None, repr=False)
    nonce_factory: Callable[[], str] = field(default=create_nonce, repr=False)
    timestamp_factory: Callable[[], str] = field(default=create_timestamp, repr=False)
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    _signer: EcoFlowSigner = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.access_key or not self.secret_key:
            raise EcoFlowError("EcoFlow access key and secret key are required")
        self.base_url = self.base_url.rstrip("/") or ECOFLOW_BASE
        self._signer = EcoFlowSigner(self.access_key, self.secret_key)
        self._client = self.client

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "EcoFlowClient":
        return cls(
            access_key=settings.access_key.get_secret_value(),
            secret_key=settings.secret_key.get_secret_value(),
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            **kwargs,
        )

    async def __aenter__(self) -> "EcoFlowClient":
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()

    async def close(self) -> None:
        # Injected clients belong to the caller.
        if self._client is not None and self._client is not self.client:
            await self._client.aclose()
        self._client = None if self.client is None else self.client

    # ------------------------------------------------------------------
    # Public REST helpers
    # ------------------------------------------------------------------
    async def get_devices(self) -> list[Device]:
        """Return every device bound to the account."""

        response = await self.request("GET", PATH_DEVICE_LIST)
        entries = response.data if isinstance(response.data, list) else []
        return [Device.model_validate(entry) for entry in entries if isinstance(entry, Mapping)]

    async def get_all_quota_info(self, sn: str) -> dict[str, Any]:
        """Return all quota values reported by device ``sn`` sorted by key."""

        response = await self.request("GET", PATH_DEVICE_QUOTA_ALL, params={"sn": sn})
        if not isinstance(response.data, Mapping):
            raise EcoFlowAPIError(
                f"Unexpected quota payload for {sn!r}: {response.data!r}",
                code=response.code,
                payload=response.model_dump(by_alias=True),
            )
        return {key: response.data[key] for key in sorted(response.data)}

    async def get_params(self, sn: str, quotas: Sequence[str]) -> dict[str, Any]:
        """Return the current values of the named ``quotas`` of device ``sn``."""

        if isinstance(quotas, str):
            quotas = [quotas]
        data = {"params": {"quotas": list(quotas)}, "sn": sn}
        response = await self.request("POST", PATH_DEVICE_QUOTA, params=data)
        return dict(response.data) if isinstance(response.data, Mapping) else {}

    async def set_params(
        self,
        sn: str,
        cmd_code: str,
        params: Mapping[str, Any] | None = None,
    ) -> str:
        """Send command ``cmd_code`` with ``params`` to device ``sn``."""

        data = {"cmdCode": cmd_code, "params": dict(params or {}), "sn": sn}
        await self.request("PUT", PATH_DEVICE_QUOTA, params=data)
        return SET_PARAMS_SUCCESS

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        """Send a signed request and return the decoded response envelope."""

        if self._client is None:
            raise EcoFlowError(
                "HTTP client not initialised. Use 'async with EcoFlowClient(...)' when calling the API."
            )

        method_token = method.upper()
        data = dict(params or {})
        url = path if path.startswith("http") else f"{self.base_url}{path}"

        attempt = 0
        while True:
            # A nonce may only be used once, so every attempt is signed again.
            nonce = self.nonce_factory()
            timestamp = self.timestamp_factory()
            headers = self._signer.headers(nonce, timestamp, data)

            request_kwargs: dict[str, Any] = {"headers": headers}
            if method_token == "GET":
                if data:
                    request_kwargs["params"] = canonical_items(data)
            else:
                headers["Content-Type"] = JSON_CONTENT_TYPE
                if data:
                    request_kwargs["json"] = data

            LOGGER.info("→ %s %s", method_token, url)
            LOGGER.debug(
                "EcoFlow request %s %s headers=%s params=%s",
                method_token,
                url,
                _redact_headers(headers),
                data,
            )

            try:
                response = await self._client.request(method_token, url, **request_kwargs)
            except httpx.HTTPError as exc:
                raise EcoFlowError(f"HTTP request to EcoFlow failed: {exc}") from exc

            status_code = response.status_code
            if status_code == 429:
                if attempt >= self.max_retries:
                    raise EcoFlowAPIError(
                        "EcoFlow rate limit exceeded", status_code=status_code, payload=response.text
                    )
                delay = min(2 ** attempt, 8) * self.retry_backoff + random.random() * self.retry_backoff
                LOGGER.warning("EcoFlow rate limit hit (HTTP 429). Retrying in %.2fs", delay)
                await asyncio.sleep(delay)
                attempt += 1
                continue

            return self._handle_response(method_token, url, response)

    def _handle_response(self, method: str, url: str, response: httpx.Response) -> ApiResponse:
        status_code = response.status_code
        try:
            payload = response.json()
        except ValueError:
            payload = None

        LOGGER.info(
            "EcoFlow response %s %s status=%s payload=%s",
            method,
            url,
            status_code,
            payload,
        )

        if not response.is_success:
            details = payload if isinstance(payload, Mapping) else {"code": f"HTTP {status_code}", "message": response.text}
            raise EcoFlowAPIError(
                format_ecoflow_error(method, url, details),
                code=str(details.get("code")) if details.get("code") is not None else None,
                status_code=status_code,
                payload=payload if payload is not None else response.text,
            )

        if not isinstance(payload, Mapping):
            raise EcoFlowAPIError(
                "Failed to decode EcoFlow response as a JSON object",
                status_code=status_code,
                payload=response.text,
            )

        try:
            envelope = ApiResponse.model_validate(payload)
        except ValidationError as exc:
            raise EcoFlowAPIError(
                f"Unexpected EcoFlow response envelope: {payload!r}",
                status_code=status_code,
                payload=payload,
            ) from exc

        if not envelope.ok:
            raise EcoFlowAPIError(
                format_ecoflow_error(method, url, payload),
                code=envelope.code,
                status_code=status_code,
                payload=payload,
            )

        return envelope


__all__ = ["EcoFlowClient", "SET_PARAMS_SUCCESS"]
