#!/usr/bin/env python3
"""
Dispatch Budget Smoke Test

Runs the guarded dispatcher against the built-in registry and checks the
session guarantees end to end, without a reasoning model.

Tests:
- Step budget stops extra calls
- Allowlist blocks calls without running them
- A failing call does not abort the session
- Alias normalization feeds the dispatcher canonical names

Usage:
    python scripts/dispatch_budget_smoke.py

Expected exit code:
    0 = success (all checks passed)
    1 = failure
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from morrow.core.logger import init_logger, get_logger
from morrow.core.dispatcher import DispatchLimits, Dispatcher, ReasonCode, TerminalState
from morrow.core.intent_plan import ToolCallRequest, normalize_plan, normalize_tool_aliases
from morrow.tools.registry import build_default_registry

# Setup logging
init_logger("INFO", quiet_mode="--quiet" in sys.argv)
logger = get_logger()


def test_step_budget(dispatcher: Dispatcher) -> bool:
    """Three proposed calls, budget of two"""
    logger.info("\n[TEST 1] Step Budget")
    logger.info("-" * 50)

    session = dispatcher.new_session(DispatchLimits(max_steps=2, max_duration_ms=20000))
    calls = [ToolCallRequest("leads_list") for _ in range(3)]
    dispatcher.dispatch_calls(calls, session)

    if len(session.trace) == 2 and session.terminal_state == TerminalState.STEP_LIMIT_REACHED:
        logger.info(f"✓ trace={len(session.trace)} state={session.terminal_state}")
        return True
    logger.error(f"✗ trace={len(session.trace)} state={session.terminal_state}")
    return False


def test_allowlist(dispatcher: Dispatcher) -> bool:
    """Calls outside the allowlist are recorded, never run"""
    logger.info("\n[TEST 2] Allowlist")
    logger.info("-" * 50)

    limits = DispatchLimits(allowed_action_names={"search_knowledge"})
    session = dispatcher.new_session(limits)
    dispatcher.dispatch_calls([ToolCallRequest("delete_everything"), ToolCallRequest("leads_list")], session)

    reasons = [entry.reason for entry in session.trace]
    if reasons == [ReasonCode.NOT_PERMITTED, ReasonCode.NOT_PERMITTED]:
        logger.info(f"✓ reasons={reasons}")
        return True
    logger.error(f"✗ reasons={reasons}")
    return False


def test_failure_isolation(dispatcher: Dispatcher) -> bool:
    """A bad call is followed by a good one"""
    logger.info("\n[TEST 3] Failure Isolation")
    logger.info("-" * 50)

    session = dispatcher.new_session()
    dispatcher.dispatch_calls([
        ToolCallRequest("website_intel", {"url": "http://127.0.0.1/admin"}),
        ToolCallRequest("audit_start", {"businessName": "Downtown Pizza"}),
    ], session)

    outcome = [(entry.action_name, entry.succeeded) for entry in session.trace]
    if outcome == [("website_intel", False), ("audit_start", True)] \
            and session.terminal_state == TerminalState.COMPLETED:
        logger.info(f"✓ {outcome}")
        logger.info(f"  blocked: {session.trace[0].output['error']['message']}")
        return True
    logger.error(f"✗ {outcome} state={session.terminal_state}")
    return False


def test_alias_plan(dispatcher: Dispatcher) -> bool:
    """Dashboard-style action names reach the canonical tools"""
    logger.info("\n[TEST 4] Alias Normalization")
    logger.info("-" * 50)

    plan = normalize_plan({
        "intents": [
            {"actionName": "startAudit", "arguments": {"businessName": "Sunset Plumbing"}},
            {"actionName": "performSEOAnalysis", "arguments": {"businessName": "Sunset Plumbing"}},
        ]
    })
    calls, log_msgs = normalize_tool_aliases(plan.calls, dispatcher.registry)
    for msg in log_msgs:
        logger.info(f"  {msg}")

    session = dispatcher.new_session()
    dispatcher.dispatch_calls(calls, session)
    names = [entry.action_name for entry in session.trace]
    if names == ["audit_start", "seo_analysis"] and all(entry.succeeded for entry in session.trace):
        logger.info(f"✓ {names}")
        return True
    logger.error(f"✗ {names}")
    return False


def main() -> int:
    dispatcher = Dispatcher(build_default_registry())
    results = [
        test_step_budget(dispatcher),
        test_allowlist(dispatcher),
        test_failure_isolation(dispatcher),
        test_alias_plan(dispatcher),
    ]

    logger.info("\n" + "=" * 50)
    logger.info(f"Passed {sum(results)}/{len(results)}")
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
