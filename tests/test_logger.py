from __future__ import annotations

import logging
import logging.handlers

from tradeterm.utils.logger import setup_logging


def test_without_file_records_are_dropped() -> None:
    root = setup_logging("debug")

    assert root.name == "tradeterm"
    assert root.level == logging.DEBUG
    assert root.propagate is False
    assert [type(h) for h in root.handlers] == [logging.NullHandler]


def test_file_handler_writes_child_records(tmp_path) -> None:
    log_file = tmp_path / "logs" / "tradeterm.log"

    root = setup_logging("INFO", str(log_file))
    logging.getLogger("tradeterm.core.state").warning("Order ticket %s failed: %s", 3, "margin")
    for handler in root.handlers:
        handler.flush()

    assert isinstance(root.handlers[0], logging.handlers.RotatingFileHandler)
    content = log_file.read_text()
    assert "tradeterm.core.state" in content
    assert "Order ticket 3 failed: margin" in content

    setup_logging("INFO")
    assert len(root.handlers) == 1
