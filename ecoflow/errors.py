"""Exceptions and error message helpers for the EcoFlow client."""

from __future__ import annotations

from typing import Any, Mapping


class EcoFlowError(RuntimeError):
    """Base exception raised by the EcoFlow client."""


class EcoFlowAPIError(EcoFlowError):
    """Raised when the EcoFlow API rejects a request or answers unexpectedly."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.payload = payload


_SIGNATURE_TOKENS = ("sign", "nonce", "timestamp", "accesskey")


def _normalise_method(method: str | None) -> str:
    token = (method or "").strip().upper()
    return token or "GET"


def _extract_details(payload: Mapping[str, Any] | str | None) -> tuple[str, str]:
    if isinstance(payload, Mapping):
        code = payload.get("code")
        message = payload.get("message") or payload.get("msg")
        return (
            "" if code in (None, "") else str(code),
            "" if message in (None, "") else str(message),
        )
    if payload in (None, ""):
        return "", ""
    return "", str(payload)


def format_ecoflow_error(
    method: str | None,
    url: str | None,
    payload: Mapping[str, Any] | str | None,
) -> str:
    """Return a human readable error string including method and URL details."""

    method_token = _normalise_method(method)
    target = url or "<unknown>"
    code_text, message_text = _extract_details(payload)

    details = (code_text + " " + message_text).strip()
    base = f"Failed to contact EcoFlow: {method_token} {target}"
    if details:
        base = f"{base} → {details}"

    message_lower = message_text.lower()
    if any(token in message_lower for token in _SIGNATURE_TOKENS):
        base = f"{base}\nHint: check the access/secret key pair and the system clock."

    return base


__all__ = ["EcoFlowAPIError", "EcoFlowError", "format_ecoflow_error"]
