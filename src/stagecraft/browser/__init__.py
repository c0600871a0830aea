"""Browser-facing protocols and helpers."""

from stagecraft.browser.keys import map_key_to_playwright
from stagecraft.browser.page import BrowserContext, Page

__all__ = ["BrowserContext", "Page", "map_key_to_playwright"]
