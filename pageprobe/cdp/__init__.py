"""
pageprobe/cdp/__init__.py

Chrome DevTools Protocol transport and the page-backed remote context.
"""

from pageprobe.cdp.async_cdp_session import AsyncCDPSession
from pageprobe.cdp.page_context import CDPPageContext

__all__ = [
    "AsyncCDPSession",
    "CDPPageContext",
]
