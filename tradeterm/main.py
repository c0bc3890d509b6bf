"""Entrypoint for the trading dashboard TUI."""
from __future__ import annotations

from .config import load_config
from .ui import TradeTermApp
from .utils.logger import setup_logging


def main() -> None:
    config = load_config()
    setup_logging(config.log_level, config.log_file)
    TradeTermApp(config).run()


if __name__ == "__main__":
    main()
