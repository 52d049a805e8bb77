"""Exceptions raised by the QBO client."""

from __future__ import annotations

from typing import Any


class QBOError(RuntimeError):
    """Base exception for all QBO client errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class QBOCriteriaError(QBOError, ValueError):
    """Query criteria could not be normalized."""


class QBOHTTPError(QBOError):
    def __init__(self, status_code: int, body: Any) -> None:
        text = body if isinstance(body, str) else repr(body)
        super().__init__(
            f"HTTP {status_code}: {text}",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body


class QBOFaultError(QBOError):
    """A 2xx response whose body carries a `Fault.Error` payload."""

    def __init__(self, errors: list[dict[str, Any]], body: Any) -> None:
        parts: list[str] = []
        for err in errors:
            if not isinstance(err, dict):
                parts.append(str(err))
                continue
            msg = err.get("Message") or ""
            detail = err.get("Detail") or ""
            parts.append(f"{msg}: {detail}" if detail else msg)
        super().__init__(
            "QBO fault: " + "; ".join(p for p in parts if p),
            details={"errors": errors},
        )
        self.errors = errors
        self.body = body


def fault_errors(body: Any) -> list[dict[str, Any]]:
    """Return the `Fault.Error` list of a response body, or [] if none."""

    if not isinstance(body, dict):
        return []
    fault = body.get("Fault")
    if not isinstance(fault, dict):
        return []
    errors = fault.get("Error")
    if isinstance(errors, list):
        return errors
    if isinstance(errors, dict):
        return [errors]
    return []
