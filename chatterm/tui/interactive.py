import sys
from typing import Callable, Optional, TextIO

from chatterm.core.config import settings
from chatterm.core.exceptions import ChatTermError
from chatterm.schemas.chat import MessageRole, SessionState
from chatterm.services.session import SessionService
from chatterm.utils.logger import Colors, tui_logger

RULE = f"{Colors.BRIGHT_BLACK}{'─' * 60}{Colors.RESET}"
PROMPT = f"\n{Colors.CYAN}❯{Colors.RESET} "


class InteractiveTUI:
    """Read-eval-print loop mapping slash commands onto the session service."""

    def __init__(
        self,
        session_service: SessionService,
        state: SessionState,
        input_func: Optional[Callable[[str], str]] = None,
        output: Optional[TextIO] = None,
    ):
        self.session = session_service
        self.state = state
        self._input = input_func or input
        self._output = output
        self.is_running = False

        self.commands = {
            "/new": self.start_new_conversation,
            "/list": self.list_conversations,
            "/load": self.load_conversation,
            "/history": self.show_history,
            "/clear": self.clear,
            "/help": self.print_header,
        }

    @property
    def output(self) -> TextIO:
        return self._output or sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def _error(self, action: str, error: Exception) -> None:
        tui_logger.error(f"Error {action}", "COMMAND", error=str(error))
        self._print(f"{Colors.RED}❌ Error {action}:{Colors.RESET} {error}")

    def _warn_no_conversation(self) -> None:
        self._print(f"\n{Colors.YELLOW}⚠ No active conversation. Use /new to start one.{Colors.RESET}")

    # ----------------------------------------------------------------- screen

    def clear_screen(self) -> None:
        self.output.write("\033[2J\033[H")
        self.output.flush()

    def print_header(self, *_args: str) -> None:
        title = f"🤖 {settings.PROJECT_NAME} Agent Playground"
        self._print(f"{Colors.BOLD}{Colors.MAGENTA}╔{'═' * 59}╗{Colors.RESET}")
        self._print(f"{Colors.BOLD}{Colors.MAGENTA}║{title.center(58)}║{Colors.RESET}")
        self._print(f"{Colors.BOLD}{Colors.MAGENTA}╚{'═' * 59}╝{Colors.RESET}")
        self._print()
        self._print(f"{Colors.BRIGHT_BLACK}User: {self.state.user_id}{Colors.RESET}")
        if self.state.current_conversation_id:
            self._print(f"{Colors.BRIGHT_BLACK}Conversation: {self.state.current_conversation_id}{Colors.RESET}")
        self._print()
        self._print(f"{Colors.YELLOW}Commands:{Colors.RESET}")
        self._print(f"  {Colors.GREEN}/new{Colors.RESET}      - Start a new conversation")
        self._print(f"  {Colors.GREEN}/list{Colors.RESET}     - List all conversations")
        self._print(f"  {Colors.GREEN}/load{Colors.RESET}     - Load a conversation by ID")
        self._print(f"  {Colors.GREEN}/history{Colors.RESET}  - Show current conversation history")
        self._print(f"  {Colors.GREEN}/clear{Colors.RESET}    - Clear the screen")
        self._print(f"  {Colors.GREEN}/help{Colors.RESET}     - Show this help message")
        self._print(f"  {Colors.GREEN}/exit{Colors.RESET}     - Exit the application")
        self._print(RULE)

    def clear(self, *_args: str) -> None:
        self.clear_screen()
        self.print_header()

    # --------------------------------------------------------------- commands

    def handle_command(self, command: str) -> bool:
        """Run a slash command. Returns False when the loop should stop."""
        parts = command.strip().split(maxsplit=1)
        name = parts[0].lower()
        argument = parts[1] if len(parts) > 1 else ""

        if name == "/exit":
            self._print(f"\n{Colors.YELLOW}👋 Goodbye!{Colors.RESET}\n")
            return False

        handler = self.commands.get(name)
        if handler is None:
            self._print(f"{Colors.RED}❌ Unknown command: {command}{Colors.RESET}")
            self._print(f"Type {Colors.GREEN}/help{Colors.RESET} to see available commands.")
            return True

        handler(argument)
        return True

    def start_new_conversation(self, *_args: str) -> None:
        try:
            conversation_id = self.session.start_new_conversation(self.state)
        except ChatTermError as e:
            self._error("creating conversation", e)
            return
        self._print(f"\n{Colors.GREEN}✓{Colors.RESET} New conversation started: {Colors.CYAN}{conversation_id}{Colors.RESET}")

    def list_conversations(self, *_args: str) -> None:
        try:
            conversations = self.session.list_conversations(self.state)
        except ChatTermError as e:
            self._error("listing conversations", e)
            return

        if not conversations:
            self._print(f"\n{Colors.YELLOW}No conversations found.{Colors.RESET}")
            return

        self._print(f"\n{Colors.BOLD}📋 Recent Conversations:{Colors.RESET}")
        self._print(RULE)
        for conversation in conversations:
            is_current = conversation.id == self.state.current_conversation_id
            marker = f"{Colors.GREEN}●{Colors.RESET}" if is_current else f"{Colors.BRIGHT_BLACK}○{Colors.RESET}"
            updated = conversation.updated_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
            count = self.session.message_count(conversation.id)
            self._print(f"{marker} {Colors.CYAN}{conversation.id}{Colors.RESET}")
            self._print(f"  {Colors.BRIGHT_BLACK}Updated: {updated} · {count} messages{Colors.RESET}")
            self._print()

    def load_conversation(self, conversation_id: str = "") -> None:
        if not conversation_id.strip():
            try:
                conversation_id = self._input(f"\n{Colors.YELLOW}Enter conversation ID:{Colors.RESET} ")
            except EOFError:
                return
        conversation_id = conversation_id.strip()
        if not conversation_id:
            return

        try:
            conversation = self.session.load_conversation(self.state, conversation_id)
        except ChatTermError as e:
            self._error("loading conversation", e)
            return

        if conversation is None:
            self._print(f"{Colors.RED}❌ Conversation not found: {conversation_id}{Colors.RESET}")
            return

        self._print(f"\n{Colors.GREEN}✓{Colors.RESET} Loaded conversation: {Colors.CYAN}{conversation.id}{Colors.RESET}")
        self.show_history()

    def show_history(self, *_args: str) -> None:
        if not self.state.is_active:
            self._warn_no_conversation()
            return

        try:
            messages = self.session.get_history(self.state)
        except ChatTermError as e:
            self._error("showing history", e)
            return

        if not messages:
            self._print(f"\n{Colors.YELLOW}No messages in this conversation yet.{Colors.RESET}")
            return

        self._print(f"\n{Colors.BOLD}💬 Conversation History:{Colors.RESET}")
        self._print(RULE)
        for message in messages:
            timestamp = message.created_at.astimezone().strftime("%H:%M:%S")
            if message.role is MessageRole.USER:
                self._print(f"\n{Colors.BLUE}[{timestamp}] You:{Colors.RESET}")
                self._print(message.content)
            elif message.role is MessageRole.ASSISTANT:
                self._print(f"\n{Colors.MAGENTA}[{timestamp}] Agent:{Colors.RESET}")
                self._print(message.content)
        self._print(f"\n{RULE}")

    def send_message(self, text: str) -> None:
        if not self.state.is_active:
            self._warn_no_conversation()
            return

        self._print(f"\n{Colors.MAGENTA}🤔 Agent is thinking...{Colors.RESET}")
        try:
            reply = self.session.send_message(self.state, text)
        except ChatTermError as e:
            self._error("sending message", e)
            return

        if reply is None:
            return
        self._print(f"\n{Colors.MAGENTA}🤖 Agent:{Colors.RESET}")
        self._print(reply)

    # ------------------------------------------------------------------- loop

    def handle_line(self, line: str) -> bool:
        """Dispatch one line of input. Returns False when the loop should stop."""
        text = line.strip()
        if not text:
            return True
        if text.startswith("/"):
            return self.handle_command(text)
        self.send_message(text)
        return True

    def start(self) -> None:
        self.is_running = True
        self.clear_screen()
        self.print_header()

        # Auto-create first conversation
        self.start_new_conversation()
        self._print(f"\n{Colors.GREEN}Ready! Type your message or use /help for commands.{Colors.RESET}")

        try:
            while self.is_running:
                try:
                    line = self._input(PROMPT)
                except EOFError:
                    break
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:
            self._print(f"\n\n{Colors.YELLOW}👋 Shutting down gracefully...{Colors.RESET}")
        finally:
            self.stop()

    def stop(self) -> None:
        if self.is_running:
            self.is_running = False
            self.session.close()
