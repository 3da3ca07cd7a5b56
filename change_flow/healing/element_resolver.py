"""
Tiered self-healing resolution of UI element descriptors.

Tiers run strictly in order and the first one yielding exactly one candidate
wins. A tier that raises, times out, finds nothing or finds several
candidates is skipped; ambiguity is never resolved by picking.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from ..core.config import DEFAULT_RESOLUTION_WORKERS, ChangeFlowConfig
from ..core.errors import ElementNotFound
from ..core.models import SelectorDescriptor
from .ledger import FAILED, HealingLedger
from .surface import ElementHandle, UISurface

logger = logging.getLogger("change_flow.healing")

Strategy = Callable[[UISurface, SelectorDescriptor, Optional[ElementHandle]], Awaitable[Optional[ElementHandle]]]


def _single(candidates: Sequence[ElementHandle]) -> Optional[ElementHandle]:
    candidates = list(candidates or ())
    if len(candidates) == 1:
        return candidates[0]
    if len(candidates) > 1:
        logger.debug(f"Rejecting ambiguous match ({len(candidates)} candidates)")
    return None


async def _first_unique(queries) -> Optional[ElementHandle]:
    """Run sub-queries in order; one that raises is skipped like one that finds nothing."""
    for label, query in queries:
        try:
            found = _single(await query())
        except Exception as e:
            logger.debug(f"Sub-query {label} failed: {e}")
            continue
        if found is not None:
            return found
    return None


async def by_identifier(surface, descriptor, scope):
    queries = []
    if descriptor.test_id:
        queries.append(("testId", lambda: surface.by_attribute("data-testid", descriptor.test_id)))
    if descriptor.id:
        queries.append(("id", lambda: surface.by_attribute("id", descriptor.id)))
    return await _first_unique(queries)


async def by_css(surface, descriptor, scope):
    if not descriptor.css:
        return None
    return _single(await surface.by_css(descriptor.css, scope))


async def by_xpath(surface, descriptor, scope):
    if not descriptor.xpath:
        return None
    return _single(await surface.by_xpath(descriptor.xpath))


async def by_text(surface, descriptor, scope):
    queries = []
    if descriptor.text:
        queries.append(("text", lambda: surface.by_text(descriptor.text, exact=True)))
    if descriptor.partial_text:
        queries.append(("partialText", lambda: surface.by_text(descriptor.partial_text, exact=False)))
    return await _first_unique(queries)


async def by_role(surface, descriptor, scope):
    if not (descriptor.role and descriptor.name):
        return None
    return _single(await surface.by_role(descriptor.role, descriptor.name))


async def by_description(surface, descriptor, scope):
    if not descriptor.description:
        return None
    return await _first_unique((
        ("text", lambda: surface.by_text(descriptor.description, exact=False)),
        ("label", lambda: surface.by_label(descriptor.description)),
        ("placeholder", lambda: surface.by_placeholder(descriptor.description)),
    ))


# Tier number is the 1-based position in this list.
ELEMENT_TIERS: Tuple[Tuple[str, Strategy], ...] = (
    ("id", by_identifier),
    ("css", by_css),
    ("xpath", by_xpath),
    ("text", by_text),
    ("role", by_role),
    ("description", by_description),
)


@dataclass
class ElementResolution:
    descriptor: SelectorDescriptor
    handle: Optional[ElementHandle] = None
    tier: Optional[int] = None
    strategy: Optional[str] = None
    error: Optional[ElementNotFound] = None

    @property
    def success(self) -> bool:
        return self.handle is not None

    @property
    def healed(self) -> bool:
        return self.success and self.tier != 1


class ElementResolver:
    def __init__(
        self,
        surface: UISurface,
        ledger: Optional[HealingLedger] = None,
        tier_timeout: Optional[float] = None,
        tiers: Sequence[Tuple[str, Strategy]] = ELEMENT_TIERS,
        workers: int = DEFAULT_RESOLUTION_WORKERS,
    ):
        self.surface = surface
        self.ledger = ledger if ledger is not None else HealingLedger()
        self.tier_timeout = tier_timeout
        self.tiers = tuple(tiers)
        self.workers = workers

    @classmethod
    def from_config(
        cls, surface: UISurface, config: ChangeFlowConfig, ledger: Optional[HealingLedger] = None
    ) -> "ElementResolver":
        return cls(
            surface,
            ledger,
            tier_timeout=config.tier_timeout_seconds,
            workers=config.resolution_workers,
        )

    async def _attempt(self, strategy: Strategy, descriptor, scope) -> Optional[ElementHandle]:
        call = strategy(self.surface, descriptor, scope)
        if self.tier_timeout is None:
            return await call
        return await asyncio.wait_for(call, self.tier_timeout)

    async def locate(self, descriptor: SelectorDescriptor, scope: Optional[ElementHandle] = None) -> ElementResolution:
        """Resolve ``descriptor`` and report which tier matched."""
        for tier, (label, strategy) in enumerate(self.tiers, start=1):
            try:
                handle = await self._attempt(strategy, descriptor, scope)
            except asyncio.TimeoutError:
                logger.debug(f"Tier {tier} ({label}) timed out after {self.tier_timeout}s")
                continue
            except Exception as e:
                logger.debug(f"Tier {tier} ({label}) failed: {e}")
                continue
            if handle is None:
                continue

            self.ledger.record(tier, True, selectors=descriptor, strategy=label)
            if tier > 1:
                logger.info(f"Healed element {descriptor.to_dict()} at tier {tier} ({label})")
            return ElementResolution(descriptor, handle=handle, tier=tier, strategy=label)

        self.ledger.record(FAILED, False, selectors=descriptor)
        logger.warning(f"Element not found with selectors: {descriptor.to_dict()}")
        raise ElementNotFound(descriptor)

    async def resolve(self, descriptor: SelectorDescriptor, scope: Optional[ElementHandle] = None) -> ElementHandle:
        """
        Raises:
            ElementNotFound: every tier failed; carries the original descriptor.
        """
        resolution = await self.locate(descriptor, scope)
        return resolution.handle

    async def click(self, descriptor: SelectorDescriptor) -> None:
        element = await self.resolve(descriptor)
        await element.click()

    async def type_text(self, descriptor: SelectorDescriptor, text: str) -> None:
        element = await self.resolve(descriptor)
        await element.fill(text)

    async def wait_for(self, descriptor: SelectorDescriptor, **options: Any) -> ElementHandle:
        element = await self.resolve(descriptor)
        await element.wait_for(**options)
        return element

    async def resolve_many(
        self, descriptors: Sequence[SelectorDescriptor], workers: Optional[int] = None
    ) -> List[ElementResolution]:
        """Resolve independent descriptors concurrently; results keep input order."""
        semaphore = asyncio.Semaphore(max(1, workers or self.workers))

        async def run(descriptor: SelectorDescriptor) -> ElementResolution:
            async with semaphore:
                try:
                    return await self.locate(descriptor)
                except ElementNotFound as e:
                    return ElementResolution(descriptor, error=e)

        return list(await asyncio.gather(*(run(descriptor) for descriptor in descriptors)))
