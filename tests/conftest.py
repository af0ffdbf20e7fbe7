"""
Shared fixtures for the Morrow test suite.

Run with: python -m pytest tests/ -v
"""
import os
import sys

import pytest

# Add morrow to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from morrow.core.logger import init_logger
from morrow.tools.registry import ToolRegistry
from morrow.tools.tool_base import FunctionTool


# ============================================================================
# HELPERS
# ============================================================================

class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingHandler:
    """Handler stub that records every invocation."""

    def __init__(self, result=None, raises=None, on_call=None):
        self.calls = []
        self.result = result if result is not None else {"text": "ok"}
        self.raises = raises
        self.on_call = on_call

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, args, ctx):
        self.calls.append((dict(args), ctx))
        if self.on_call is not None:
            self.on_call()
        if self.raises is not None:
            raise self.raises
        return self.result


def object_schema(properties=None, required=None):
    return {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
        "additionalProperties": False,
    }


def stub_registry(**handlers) -> ToolRegistry:
    """Registry of FunctionTools; each kwarg is name=handler or name=(handler, schema)."""
    registry = ToolRegistry()
    for name, spec in handlers.items():
        handler, schema = spec if isinstance(spec, tuple) else (spec, object_schema())
        registry.register(FunctionTool(name, handler, args_schema=schema, description=f"{name} stub"))
    return registry.freeze()


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test output free of log lines."""
    init_logger("CRITICAL", quiet_mode=True, use_rich=False)
    yield


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def first_phrase():
    """Deterministic lead-phrase picker."""
    return lambda options: options[0]
