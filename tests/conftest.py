"""
Shared fixtures: in-memory UI surface, scripted HTTP transport and sample sources.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from change_flow.core.config import ChangeFlowConfig
from change_flow.healing.ledger import HealingLedger
from change_flow.healing.transport import HttpResponse


class FakeHandle:
    """Element handle that records the interactions performed on it."""

    def __init__(self, label: str):
        self.label = label
        self.clicks = 0
        self.filled: List[str] = []
        self.waits: List[Dict[str, Any]] = []

    async def click(self) -> None:
        self.clicks += 1

    async def fill(self, text: str) -> None:
        self.filled.append(text)

    async def wait_for(self, **options: Any) -> None:
        self.waits.append(options)

    def __repr__(self):
        return f"FakeHandle({self.label!r})"


class FakeSurface:
    """
    Scripted UISurface.

    Results are keyed by ``(query, *args)``; a value may be a list of handles,
    an exception instance to raise, or a float delay (seconds) to sleep forever-ish.
    """

    def __init__(self):
        self.results: Dict[Tuple, Any] = {}
        self.calls: List[Tuple] = []

    def add(self, key: Tuple, value: Any) -> None:
        self.results[key] = value

    async def _lookup(self, key: Tuple):
        self.calls.append(key)
        value = self.results.get(key, [])
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, float):
            await asyncio.sleep(value)
            return []
        return value

    async def by_attribute(self, name, value):
        return await self._lookup(("attribute", name, value))

    async def by_css(self, selector, scope=None):
        return await self._lookup(("css", selector))

    async def by_xpath(self, path):
        return await self._lookup(("xpath", path))

    async def by_text(self, text, exact):
        return await self._lookup(("text", text, exact))

    async def by_role(self, role, name):
        return await self._lookup(("role", role, name))

    async def by_label(self, text):
        return await self._lookup(("label", text))

    async def by_placeholder(self, text):
        return await self._lookup(("placeholder", text))


class FakeTransport:
    """HttpTransport answering from a path -> response map; unknown paths raise ConnectionError."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = dict(routes or {})
        self.calls: List[Tuple[str, str]] = []

    async def request(self, method, path, data=None, headers=None):
        self.calls.append((method, path))
        value = self.routes.get(path)
        if value is None:
            raise ConnectionError(f"connection refused: {path}")
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, float):
            await asyncio.sleep(value)
        if isinstance(value, HttpResponse):
            return value
        return HttpResponse(status=200, data={"path": path})


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def ledger() -> HealingLedger:
    return HealingLedger()


@pytest.fixture
def make_handle():
    return FakeHandle


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def config(tmp_path) -> ChangeFlowConfig:
    return ChangeFlowConfig(project_root=str(tmp_path))


@pytest.fixture
def sample_js_source() -> str:
    return """\
function getUser(id) {
  return fetch(`/users/${id}`);
}

const handleClick = () => {
  console.log('clicked');
};

class UserCard {
  render() {
    return null;
  }

  onSelect = () => {
    this.selected = true;
  };
}

const userService = {
  async fetchAll() {
    return [];
  },
  remove: function (id) {
    return id;
  },
};
"""
