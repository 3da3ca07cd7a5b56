"""
Tiered self-healing resolution of logical API endpoints.

Each tier rewrites the path and issues one request. The first request that
returns any response at all wins; judging the status code is the caller's job.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..core.config import DEFAULT_RESOLUTION_WORKERS, ChangeFlowConfig
from ..core.errors import EndpointUnresolved
from .ledger import FAILED, HealingLedger
from .transport import HttpResponse, HttpTransport

logger = logging.getLogger("change_flow.healing")


def pluralize_segment(segment: str) -> str:
    if segment.endswith("y"):
        return segment[:-1] + "ies"
    if not segment.endswith("s"):
        return segment + "s"
    return segment


def pluralize_endpoint(endpoint: str) -> str:
    """Pluralise the last path segment that is not a ``:param`` placeholder."""
    segments = endpoint.split("/")
    for index in range(len(segments) - 1, -1, -1):
        segment = segments[index]
        if segment and not segment.startswith(":"):
            segments[index] = pluralize_segment(segment)
            break
    return "/".join(segments)


def strip_trailing_slash(endpoint: str) -> str:
    stripped = endpoint.rstrip("/")
    return stripped or "/"


# Tier number is the 1-based position in this list.
ENDPOINT_TIERS: Tuple[Tuple[str, Callable[[str], str]], ...] = (
    ("exact", lambda endpoint: endpoint),
    ("api-prefix", lambda endpoint: f"/api{endpoint}"),
    ("v1", lambda endpoint: f"/v1{endpoint}"),
    ("v2", lambda endpoint: f"/v2{endpoint}"),
    ("no-trailing-slash", strip_trailing_slash),
    ("pluralized", pluralize_endpoint),
)


@dataclass
class EndpointResolution:
    endpoint: str
    method: str
    resolved_path: Optional[str] = None
    tier: Optional[int] = None
    strategy: Optional[str] = None
    healed: bool = False
    response: Optional[HttpResponse] = None
    error: Optional[EndpointUnresolved] = None

    @property
    def success(self) -> bool:
        return self.response is not None

    def to_dict(self):
        data = {
            "endpoint": self.endpoint,
            "method": self.method,
            "success": self.success,
            "healed": self.healed,
        }
        if self.success:
            data.update(
                resolvedPath=self.resolved_path,
                tier=self.tier,
                healingStrategy=self.strategy,
                status=self.response.status,
            )
        if self.error is not None:
            data["error"] = str(self.error)
        return data


class EndpointResolver:
    def __init__(
        self,
        transport: HttpTransport,
        ledger: Optional[HealingLedger] = None,
        tier_timeout: Optional[float] = None,
        tiers: Sequence[Tuple[str, Callable[[str], str]]] = ENDPOINT_TIERS,
        workers: int = DEFAULT_RESOLUTION_WORKERS,
    ):
        self.transport = transport
        self.ledger = ledger if ledger is not None else HealingLedger()
        self.tier_timeout = tier_timeout
        self.tiers = tuple(tiers)
        self.workers = workers

    @classmethod
    def from_config(
        cls, transport: HttpTransport, config: ChangeFlowConfig, ledger: Optional[HealingLedger] = None
    ) -> "EndpointResolver":
        return cls(
            transport,
            ledger,
            tier_timeout=config.tier_timeout_seconds,
            workers=config.resolution_workers,
        )

    async def _request(self, method: str, path: str, data: Any) -> HttpResponse:
        call = self.transport.request(method, path, data=data)
        if self.tier_timeout is None:
            return await call
        return await asyncio.wait_for(call, self.tier_timeout)

    async def resolve(self, endpoint: str, method: str = "GET", data: Any = None) -> EndpointResolution:
        """
        Raises:
            EndpointUnresolved: every tier failed, chained from the last tier's error.
        """
        method = method.upper()
        last_error: Optional[BaseException] = None
        for tier, (label, rewrite) in enumerate(self.tiers, start=1):
            path = rewrite(endpoint)
            try:
                response = await self._request(method, path, data)
            except asyncio.TimeoutError as e:
                logger.debug(f"Tier {tier} ({label}) {method} {path} timed out after {self.tier_timeout}s")
                last_error = e
                continue
            except Exception as e:
                logger.debug(f"Tier {tier} ({label}) {method} {path} failed: {e}")
                last_error = e
                continue

            healed = tier > 1
            self.ledger.record(tier, True, endpoint=endpoint, strategy=label)
            if healed:
                logger.info(f"Healed endpoint {method} {endpoint} -> {path} ({label})")
            return EndpointResolution(
                endpoint=endpoint,
                method=method,
                resolved_path=path,
                tier=tier,
                strategy=label,
                healed=healed,
                response=response,
            )

        self.ledger.record(FAILED, False, endpoint=endpoint)
        logger.warning(f"Endpoint {method} {endpoint} unresolved after {len(self.tiers)} tiers")
        raise EndpointUnresolved(endpoint, method, last_error) from last_error

    async def resolve_many(
        self, requests: Sequence[Tuple[str, str]], workers: Optional[int] = None
    ) -> List[EndpointResolution]:
        """Resolve ``(endpoint, method)`` pairs concurrently; results keep input order."""
        semaphore = asyncio.Semaphore(max(1, workers or self.workers))

        async def run(endpoint: str, method: str) -> EndpointResolution:
            async with semaphore:
                try:
                    return await self.resolve(endpoint, method)
                except EndpointUnresolved as e:
                    return EndpointResolution(endpoint=endpoint, method=method.upper(), error=e)

        return list(await asyncio.gather(*(run(endpoint, method) for endpoint, method in requests)))
