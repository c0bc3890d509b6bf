"""UI package (Textual host + pure render helpers)."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .app import TradeTermApp as TradeTermApp

__all__ = ["TradeTermApp"]


def __getattr__(name: str):
    if name == "TradeTermApp":
        from .app import TradeTermApp

        return TradeTermApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
