"""
Interactive chat session for ElProfessor.

Free text is sent as an AWS question; input starting with ``/`` is a command.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel

from ..core.agent import ElProfessor
from ..core.client.errors import create_user_friendly_message
from ..core.client.responses import AgentResponse, MessageRole

logger = logging.getLogger(__name__)

HELP_TEXT = """[bold]Available commands:[/bold]

[cyan]/terraform <description>[/cyan]          - Generate Terraform code
[cyan]/cdk [--lang <language>] <description>[/cyan] - Generate CDK code
[cyan]/diagram <description>[/cyan]            - Create architecture diagram
[cyan]/docs <code>[/cyan]                      - Generate documentation
[cyan]/stream <message>[/cyan]                 - Stream response
[cyan]/history[/cyan]                          - Show conversation history
[cyan]/clear[/cyan]                            - Clear history
[cyan]/help[/cyan]                             - Show this help message
[cyan]/exit[/cyan]                             - Exit the application

[dim]Type your questions or use commands above[/dim]"""


def print_response(console: Console, response: AgentResponse) -> None:
    """Render a response and any function calls it reports."""
    console.print()
    console.print(Panel(Markdown(response.text or "_(empty response)_"), title="Response", border_style="blue"))

    if response.has_function_calls:
        console.print("[bold]Function Calls:[/bold]")
        console.print_json(data=response.function_calls)

    if response.metadata and response.metadata.tokens_used:
        console.print(f"[dim]({response.metadata.tokens_used} tokens, {response.metadata.model})[/dim]")
    console.print()


def parse_cdk_arguments(content: str, default_language: str = "typescript") -> Tuple[str, str]:
    """Split ``--lang <language>`` off a /cdk argument string."""
    tokens = content.split()
    if len(tokens) >= 2 and tokens[0] in ("--lang", "--language"):
        return tokens[1], " ".join(tokens[2:])
    return default_language, content


class InteractiveSession:
    """Dispatches user input to the agent and renders the results."""

    def __init__(self, agent: ElProfessor, console: Optional[Console] = None):
        self.agent = agent
        self.console = console or Console()
        self._commands: Dict[str, Callable[[str], Awaitable[bool]]] = {
            "/terraform": self._terraform,
            "/cdk": self._cdk,
            "/diagram": self._diagram,
            "/docs": self._docs,
            "/stream": self._stream,
            "/history": self._history,
            "/clear": self._clear,
            "/help": self._help,
            "/exit": self._exit,
        }

    def show_welcome(self) -> None:
        connected = self.agent.get_connected_servers()
        self.console.print("\n[bold green]ElProfessor CLI[/bold green] - Ready to assist!")
        self.console.print(f"[dim]Connected MCP Servers: {', '.join(connected) or 'none'}[/dim]")
        self.console.print(HELP_TEXT)
        self.console.print()

    async def handle_input(self, user_input: str) -> bool:
        """
        Handle one line of input.

        Errors are reported to the console and never end the session.

        Returns:
            False when the session should end
        """
        user_input = user_input.strip()
        if not user_input:
            return True

        try:
            if user_input.startswith("/"):
                return await self.handle_command(user_input)
            await self._chat(user_input)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            self.console.print(f"[red]Error:[/red] {create_user_friendly_message(e)}")
        return True

    async def handle_command(self, command: str) -> bool:
        cmd, _, content = command.partition(" ")
        handler = self._commands.get(cmd.lower())
        if handler is None:
            self.console.print("[yellow]Unknown command.[/yellow] Type a question or use /help.")
            return True
        return await handler(content.strip())

    def _usage(self, usage: str) -> bool:
        self.console.print(f"[yellow]Usage:[/yellow] {usage}")
        return True

    async def _chat(self, message: str) -> None:
        with self.console.status("[dim]Thinking...[/dim]"):
            response = await self.agent.ask_aws_question(message)
        print_response(self.console, response)

    async def _terraform(self, content: str) -> bool:
        if not content:
            return self._usage("/terraform <description>")
        with self.console.status("[dim]Generating Terraform configuration...[/dim]"):
            response = await self.agent.generate_terraform(content)
        print_response(self.console, response)
        return True

    async def _cdk(self, content: str) -> bool:
        language, description = parse_cdk_arguments(content)
        if not description:
            return self._usage("/cdk [--lang <language>] <description>")
        with self.console.status(f"[dim]Generating CDK code ({language})...[/dim]"):
            response = await self.agent.generate_cdk(description, language)
        print_response(self.console, response)
        return True

    async def _diagram(self, content: str) -> bool:
        if not content:
            return self._usage("/diagram <description>")
        with self.console.status("[dim]Creating architecture diagram...[/dim]"):
            response = await self.agent.create_architecture_diagram(content)
        print_response(self.console, response)
        return True

    async def _docs(self, content: str) -> bool:
        if not content:
            return self._usage("/docs <code or description>")
        with self.console.status("[dim]Generating documentation...[/dim]"):
            response = await self.agent.generate_documentation(content)
        print_response(self.console, response)
        return True

    async def _stream(self, content: str) -> bool:
        if not content:
            return self._usage("/stream <message>")
        self.console.print("[blue]Streaming response...[/blue]\n")
        async for chunk in await self.agent.chat_stream(content):
            self.console.print(chunk, end="", markup=False, highlight=False)
        self.console.print("\n")
        return True

    async def _history(self, content: str) -> bool:
        history = self.agent.get_conversation_history()
        if not history:
            self.console.print("[dim]No conversation history[/dim]")
            return True

        self.console.print("\n[bold]Conversation History:[/bold]")
        for index, message in enumerate(history, 1):
            role = "You" if message.role == MessageRole.USER else "AI"
            timestamp = message.timestamp.strftime("%H:%M:%S")
            self.console.print(f"{index}. [dim]{timestamp}[/dim] [bold]{role}[/bold] {escape(message.preview())}")
        self.console.print()
        return True

    async def _clear(self, content: str) -> bool:
        self.agent.clear_history()
        self.console.print("[green]✓[/green] History cleared")
        return True

    async def _help(self, content: str) -> bool:
        self.console.print(Panel(HELP_TEXT, title="Help", border_style="blue"))
        return True

    async def _exit(self, content: str) -> bool:
        return False
