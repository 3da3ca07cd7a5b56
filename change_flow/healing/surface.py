"""
Contracts for the live UI surface the element resolver queries.

A browser driver adapter implements ``UISurface``; every query returns the
sequence of candidate handles it found, possibly empty.
"""

from typing import Any, Optional, Protocol, Sequence


class ElementHandle(Protocol):
    async def click(self) -> None:
        ...

    async def fill(self, text: str) -> None:
        ...

    async def wait_for(self, **options: Any) -> None:
        ...


class UISurface(Protocol):
    async def by_attribute(self, name: str, value: str) -> Sequence[ElementHandle]:
        ...

    async def by_css(self, selector: str, scope: Optional[ElementHandle] = None) -> Sequence[ElementHandle]:
        ...

    async def by_xpath(self, path: str) -> Sequence[ElementHandle]:
        ...

    async def by_text(self, text: str, exact: bool) -> Sequence[ElementHandle]:
        ...

    async def by_role(self, role: str, name: str) -> Sequence[ElementHandle]:
        ...

    async def by_label(self, text: str) -> Sequence[ElementHandle]:
        ...

    async def by_placeholder(self, text: str) -> Sequence[ElementHandle]:
        ...
