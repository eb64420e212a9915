"""Pure mapping utilities for Aurelane response envelopes.

The backend is inconsistent about where it puts things: some endpoints wrap
results in ``{"success": true, "data": {...}}``, others return the object
at the top level. Everything below resolves those shapes in one place.
"""

from __future__ import annotations

from typing import Any


class DataMapper:
    """Simplified data extraction utility."""

    @staticmethod
    def safe_get(data: dict[str, Any] | None, *keys: str, default: Any = None) -> Any:
        """Safely get a value from dictionary with fallback keys."""
        if not data:
            return default
        for key in keys:
            if key in data and data[key] is not None:
                return data[key]
        return default

    @staticmethod
    def safe_get_nested(data: dict[str, Any] | None, *paths: str | list[str]) -> Any:
        """Get value from nested paths like ['order', '_id'] or 'orderId'."""
        if not data:
            return None

        for path in paths:
            if isinstance(path, str):
                if data.get(path) is not None:
                    return data[path]
            elif isinstance(path, list):
                current: Any = data
                for key in path:
                    if isinstance(current, dict) and key in current:
                        current = current[key]
                    else:
                        break
                else:
                    if current is not None:
                        return current
        return None


def unwrap_envelope(payload: Any) -> Any:
    """Return the ``data`` object of an envelope, or the payload itself."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def extract_items(payload: Any, *keys: str) -> list[Any]:
    """Find a list under ``data.<key>``, ``<key>`` or ``data``, else ``[]``."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []

    data = payload.get("data")
    for source in (data, payload):
        if not isinstance(source, dict):
            continue
        for key in keys:
            value = source.get(key)
            if isinstance(value, list):
                return value

    if isinstance(data, list):
        return data
    return []


def extract_order_id(payload: Any) -> str | None:
    """Resolve the created order id from any of the backend's shapes."""
    if not isinstance(payload, dict):
        return None
    for source in (unwrap_envelope(payload), payload):
        value = DataMapper.safe_get_nested(
            source, "orderId", ["order", "_id"], ["order", "id"]
        )
        if value is not None:
            return str(value)
    return None


def extract_message(payload: Any, default: str | None = None) -> str | None:
    """Return a human-readable message, including gateway error descriptions."""
    if not isinstance(payload, dict):
        return default
    message = DataMapper.safe_get_nested(
        payload, "message", ["error", "description"], ["data", "message"]
    )
    return str(message) if message else default


def is_explicit_failure(payload: Any) -> bool:
    """True only when the body carries ``success: false``."""
    return isinstance(payload, dict) and payload.get("success") is False


def is_explicit_success(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("success") is True


__all__ = [
    "DataMapper",
    "extract_items",
    "extract_message",
    "extract_order_id",
    "is_explicit_failure",
    "is_explicit_success",
    "unwrap_envelope",
]
