"""Logging setup for applications embedding the client."""

from __future__ import annotations

import logging

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int = logging.INFO) -> None:
    """
    Install a basic stream handler and silence transport chatter.

    httpx and httpcore log every connection event at INFO/DEBUG. They are
    dropped to WARNING unless the caller asks for DEBUG output, in which case
    the request lines logged by the transport are joined by the raw ones.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    transport_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


__all__ = ["configure_logging"]
