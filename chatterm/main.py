"""Command-line entry point for ChatTerm."""

import argparse
import sys
from typing import List, Optional

from chatterm.core.config import settings
from chatterm.core.exceptions import ChatTermError
from chatterm.services.agent import initialize_agent
from chatterm.services.chat import ChatStore
from chatterm.services.provider import Provider
from chatterm.services.session import SessionService
from chatterm.tui.interactive import InteractiveTUI
from chatterm.utils.logger import Colors
from chatterm.utils.user import generate_user_id, get_system_username


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatterm", description=settings.PROJECT_DESCRIPTION)
    parser.add_argument("--db", default=settings.DATABASE_URL, help="database URL or SQLite file path")
    parser.add_argument(
        "--provider",
        default=settings.LLM_PROVIDER,
        choices=[provider.value for provider in Provider],
        help="text-generation provider",
    )
    parser.add_argument("--model", default=None, help="model name (provider default when omitted)")
    parser.add_argument("--user", default=None, help="username to derive the user id from")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    print(f"{Colors.CYAN}🚀 Initializing {settings.PROJECT_NAME}...{Colors.RESET}\n")

    store = None
    try:
        user_id = generate_user_id(args.user or get_system_username())
        print(f"{Colors.BRIGHT_BLACK}✓ User ID: {user_id}{Colors.RESET}")

        print(f"{Colors.BRIGHT_BLACK}✓ Initializing database...{Colors.RESET}")
        store = ChatStore(args.db)
        store.initialize()

        print(f"{Colors.BRIGHT_BLACK}✓ Initializing AI agent...{Colors.RESET}")
        agent, system_prompt = initialize_agent(args.provider, args.model)
    except ChatTermError as e:
        print(f"{Colors.RED}❌ Fatal error:{Colors.RESET} {e}", file=sys.stderr)
        if store is not None:
            store.close()
        return 1

    print(f"{Colors.BRIGHT_BLACK}✓ Starting interactive terminal...{Colors.RESET}\n")
    session_service = SessionService(store, agent.generate, system_prompt)
    tui = InteractiveTUI(session_service, session_service.new_state(user_id))
    tui.start()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
