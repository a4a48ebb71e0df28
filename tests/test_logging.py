"""Tests for logging helpers."""

import logging
from unittest.mock import patch

from qdrant_wire.core.logging import get_logger, setup_logging


def test_get_logger_uses_module_name():
    logger = get_logger("qdrant_wire.services.channel")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "qdrant_wire.services.channel"


def test_setup_logging_reads_level_from_settings():
    with patch("qdrant_wire.core.logging.logging.basicConfig") as basic_config:
        setup_logging()

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == "INFO"
    assert "%(name)s" in kwargs["format"]
