from __future__ import annotations

import logging

import pytest

from aurelane.core.logging_config import configure_logging


@pytest.fixture
def restore_transport_loggers():
    saved = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_transport_loggers_quietened(restore_transport_loggers):
    configure_logging(logging.INFO)

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_debug_keeps_transport_chatter(restore_transport_loggers):
    configure_logging(logging.DEBUG)

    assert logging.getLogger("httpx").level == logging.DEBUG
