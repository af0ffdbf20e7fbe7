#!/usr/bin/env python3
"""
Example conversations

Runs a few scripted conversations through the single-turn orchestrator and
prints the resolved intent, the dispatch trace and the rendered reply for
each exchange. No reasoning model is needed.

Usage:
    python scripts/example_conversation.py
    python scripts/example_conversation.py --quiet
"""

import os
import sys
from typing import Any, Dict, List

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from morrow.core.logger import init_logger
from morrow.core.orchestrator import Orchestrator

CONVERSATIONS: List[Dict[str, Any]] = [
    {
        "title": "New user - exploring capabilities",
        "exchanges": [
            {"utterance": "Hey, what can you do?", "context": {}},
            {"utterance": "Cool! Can you help me with SEO?", "context": {"businessName": "Joe's Pizza"}},
        ],
    },
    {
        "title": "Clarification - business name asked, then answered",
        "exchanges": [
            {"utterance": "Can you analyze the SEO for my plumbing business in Denver?", "context": {}},
            {"utterance": "Sunset Plumbing", "context": {}},
        ],
    },
    {
        "title": "Business owner - quick audit",
        "exchanges": [
            {
                "utterance": "I need to run an audit on my website",
                "context": {"businessName": "Sunset Plumbing", "website": "https://sunsetplumbing.example"},
            },
            {
                "utterance": "Great! Can you also analyze my competitors?",
                "context": {"businessName": "Sunset Plumbing", "location": "San Diego"},
            },
        ],
    },
    {
        "title": "Content manager - calendar",
        "exchanges": [
            {
                "utterance": "Can you make a 30-day content calendar for Instagram?",
                "context": {"businessName": "Fitness First Gym", "industry": "fitness"},
            },
        ],
    },
    {
        "title": "Urgent request",
        "exchanges": [
            {
                "utterance": "ASAP! I need an SEO check now!",
                "context": {"businessName": "Emergency Dental", "website": "https://emergencydental.example"},
            },
        ],
    },
]


def main() -> int:
    init_logger("WARNING", quiet_mode="--quiet" in sys.argv)
    orchestrator = Orchestrator()

    for idx, conversation in enumerate(CONVERSATIONS, 1):
        print("\n" + "-" * 70)
        print(f"Conversation {idx}: {conversation['title']}")
        print("-" * 70)

        conversation_id = None
        for exchange in conversation["exchanges"]:
            request = dict(exchange)
            if conversation_id:
                request["conversationId"] = conversation_id
            response = orchestrator.handle_request(request)
            conversation_id = response["conversationId"]

            print(f"\nUser: {exchange['utterance']}")
            print(
                f"  intent={response['intentLabel']} action={response.get('actionName')} "
                f"confidence={response['confidence']:.2f} state={response['terminalState']}"
            )
            for entry in response["trace"]:
                status = "ok" if entry["succeeded"] else entry.get("reason")
                print(f"  step {entry['step']}: {entry['actionName']} -> {status}")
            print("\nMorrow:")
            print(response["renderedText"])

    return 0


if __name__ == "__main__":
    sys.exit(main())
