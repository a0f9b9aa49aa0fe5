"""CLI entry point for the financial application intake agent.

A terminal chat loop for development.  Sessions live in process memory
unless ``DYNAMODB_TABLE`` is set.  For production, use the FastAPI server
(``intake_agent/server.py``).

Usage:
    python -m intake_agent.main                        # normal mode (quiet)
    python -m intake_agent.main --debug                # debug mode
    python -m intake_agent.main --strategy pattern     # no extraction model
"""

from __future__ import annotations

import argparse
import logging

from intake_agent import handlers
from intake_agent.config import DYNAMODB_TABLE, EXTRACTION_STRATEGY
from intake_agent.errors import IntakeError
from intake_agent.extraction import STRATEGIES, LLMExtractor
from intake_agent.services.llm_client import build_chat_llm, build_extraction_llm
from intake_agent.services.session_store import create_session_store

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("intake_agent").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="Financial application intake agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    parser.add_argument(
        "--strategy", choices=STRATEGIES, default=EXTRACTION_STRATEGY,
        help="Field extraction strategy",
    )
    args = parser.parse_args()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Financial Application Portal - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' to reset, 'state' for progress.")
    print("=" * 60 + "\n")

    store = create_session_store(DYNAMODB_TABLE)
    chat_llm = build_chat_llm()
    extractor = None if args.strategy == "pattern" else LLMExtractor(build_extraction_llm())

    session = handlers.initialize_session(store)
    session_id = session["sessionId"]
    print(f"Agent: {session['message']}\n")

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye!")
            break

        if user_input.lower() == "new":
            session = handlers.reset_session(store, session_id)
            session_id = session["sessionId"]
            print(f"\n>> New session started: {session_id[:8]}...\n")
            print(f"Agent: {session['message']}\n")
            continue

        if user_input.lower() == "state":
            state = handlers.get_session_state(store, session_id)
            print(
                f"\n>> Section: {state['currentSection']} | "
                f"{state['completionPercentage']}% complete\n"
            )
            continue

        try:
            result = handlers.send_message(
                store, chat_llm, session_id, user_input,
                extractor=extractor, strategy=args.strategy,
            )
        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except IntakeError as e:
            print(f"\nAgent: Sorry, something went wrong: {e.message}\n")
            continue

        print(f"\nAgent: {result['message']}\n")
        if result["sectionComplete"]:
            print(f">> Section complete. Now on: {result['currentSection']}\n")
        if result["applicationComplete"]:
            print(result["summary"])
            print("\n>> Application complete. Type 'new' to start again or 'quit' to exit.\n")


if __name__ == "__main__":
    main()
