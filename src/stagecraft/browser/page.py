"""Page-automation capability consumed by the agent.

Concrete drivers (CDP, Playwright, ...) live outside this package; they only
have to satisfy these protocols.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Page(Protocol):
    """One live browser page."""

    def url(self) -> str: ...

    async def click(
        self,
        x: float,
        y: float,
        *,
        button: str = "left",
        click_count: int = 1,
        return_xpath: bool = False,
    ) -> str | None:
        """Click at viewport coordinates.

        With ``return_xpath`` the driver reports the locator of the element
        under the pointer (empty string when unknown).
        """
        ...

    async def type(self, text: str) -> None: ...

    async def key_press(self, key: str) -> None: ...

    async def scroll(self, x: float, y: float, delta_x: float, delta_y: float) -> None: ...

    async def drag_and_drop(
        self,
        from_x: float,
        from_y: float,
        to_x: float,
        to_y: float,
        *,
        steps: int = 10,
        delay: int = 0,
        return_xpath: bool = False,
    ) -> tuple[str, str] | None: ...

    async def goto(self, url: str, *, wait_until: str = "load") -> None: ...

    async def go_back(self) -> None: ...

    async def go_forward(self) -> None: ...

    async def screenshot(self, *, full_page: bool = False) -> bytes: ...

    async def viewport_size(self) -> tuple[int, int]:
        """Viewport width and height in CSS pixels."""
        ...

    async def enable_cursor_overlay(self) -> None: ...

    async def active_element_xpath(self) -> str | None:
        """Locator of the focused element, if any."""
        ...


@runtime_checkable
class BrowserContext(Protocol):
    """Owner of the page the agent acts on."""

    async def active_page(self) -> Page: ...
