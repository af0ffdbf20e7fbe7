#!/usr/bin/env python3
"""
Morrow.AI brain - command line entry point.

Usage:
    python run.py "Who are my competitors in Denver?"      # Single request
    python run.py                                          # Interactive session
    python run.py --brain "List my leads, then audit the first one"
"""
import sys
import json
import argparse
from morrow.core.logger import init_logger, get_logger
from morrow.core.config import Config
from morrow.core.conversation_store import new_conversation_id


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Morrow.AI - marketing assistant brain (intent -> guarded action -> reply)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py "Hey, what can you do?"
  python run.py "Check SEO for my bakery in Austin" --context businessName="Crumb & Co"
  python run.py --tools-allow search_knowledge,leads_list --max-steps 2 "List my leads"
  python run.py --brain "List my leads, then start an audit for the first one"
  python run.py --json "Create a content calendar for next month" --context businessName=Acme
  python run.py                     # Interactive mode (one conversation)
        """
    )

    parser.add_argument(
        "prompt",
        nargs="?",
        default=None,
        help="Request text (omit for interactive mode)"
    )

    parser.add_argument(
        "--brain",
        action="store_true",
        help="Let the external reasoning model drive tool calls (needs MORROW_LLM_API_KEY)"
    )

    parser.add_argument(
        "--tools-allow",
        type=str,
        default=None,
        help="Comma-separated allowlist of action names (default: all)"
    )

    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help=f"Maximum action calls per request (default: {Config.MAX_STEPS})"
    )

    parser.add_argument(
        "--max-time-ms",
        type=int,
        default=None,
        help=f"Time budget per request in milliseconds (default: {Config.MAX_DURATION_MS})"
    )

    parser.add_argument(
        "--context",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Known value passed as context (repeatable), e.g. businessName=Acme"
    )

    parser.add_argument(
        "--conversation-id",
        type=str,
        default=None,
        help="Conversation id for follow-up context (default: new id)"
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help=f"Reasoning model for --brain (default: {Config.LLM_MODEL})"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full JSON response instead of the rendered text"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=Config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {Config.LOG_LEVEL})"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Hide per-call subsystem logs ([INTENT], [DISPATCH], [TOOLS], ...)"
    )

    return parser.parse_args(argv)


def parse_context(pairs):
    """Turn ["k=v", ...] into a dict; raises ValueError on a malformed pair"""
    context = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid --context value '{pair}' (expected KEY=VALUE)")
        context[key] = value.strip().strip('"').strip("'")
    return context


def build_request(args, prompt, context, conversation_id):
    request = {
        "utterance": prompt,
        "context": context,
        "conversationId": conversation_id,
    }
    if args.tools_allow:
        request["toolsAllow"] = [name.strip() for name in args.tools_allow.split(",") if name.strip()]
    limits = {}
    if args.max_steps is not None:
        limits["maxSteps"] = args.max_steps
    if args.max_time_ms is not None:
        limits["maxTimeMs"] = args.max_time_ms
    if limits:
        request["limits"] = limits
    return request


def handle(orchestrator, args, prompt, context, conversation_id):
    request = build_request(args, prompt, context, conversation_id)
    if args.brain:
        return orchestrator.run_brain(
            prompt,
            tools_allow=request.get("toolsAllow"),
            limits=request.get("limits"),
            conversation_id=conversation_id,
            model=args.model,
            context=context,
        )
    return orchestrator.handle_request(request)


def emit(args, response):
    if args.json:
        print(json.dumps(response, indent=2, ensure_ascii=False, default=str))
    else:
        print(response["renderedText"])


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    init_logger(args.log_level, quiet_mode=args.quiet or Config.QUIET_MODE)
    logger = get_logger()

    try:
        context = parse_context(args.context)
    except ValueError as e:
        logger.error(str(e))
        return 2

    from morrow.brain.llm_client import LLMNotConfiguredError
    from morrow.core.orchestrator import Orchestrator

    orchestrator = Orchestrator()
    conversation_id = args.conversation_id or new_conversation_id()

    try:
        if args.prompt is not None:
            emit(args, handle(orchestrator, args, args.prompt, context, conversation_id))
            return 0

        print("\n" + "=" * 60)
        print("  Morrow.AI")
        print("=" * 60)
        print(f"  Mode: {'brain (' + (args.model or Config.LLM_MODEL) + ')' if args.brain else 'intent'}")
        print(f"  Conversation: {conversation_id}")
        print(f"  Budget: {args.max_steps or Config.MAX_STEPS} steps / {args.max_time_ms or Config.MAX_DURATION_MS}ms")
        print("  Type 'exit' to quit")
        print("=" * 60 + "\n")

        while True:
            try:
                prompt = input("you> ").strip()
            except EOFError:
                print()
                return 0
            if not prompt:
                continue
            if prompt.lower() in ("exit", "quit"):
                return 0
            emit(args, handle(orchestrator, args, prompt, context, conversation_id))
            print()

    except LLMNotConfiguredError as e:
        logger.error(str(e))
        logger.info("Set MORROW_LLM_API_KEY (or OPENAI_API_KEY), or run without --brain")
        return 1

    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
