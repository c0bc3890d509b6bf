"""Module entrypoint for the trading dashboard TUI.

Run:
  python -m tradeterm
"""

from __future__ import annotations

from .main import main


if __name__ == "__main__":
    main()
