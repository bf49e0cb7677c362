"""Web service for EtherBlink."""

from .app import EtherBlinkServer
from .pages import PageRenderer

__all__ = ["EtherBlinkServer", "PageRenderer"]
