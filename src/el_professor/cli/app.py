"""
Main CLI application entry point.

This module contains the main Typer application and command handlers
for ElProfessor.
"""

import asyncio
import os
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from el_professor import VERSION
from el_professor.cli.session import InteractiveSession, print_response
from el_professor.config.env_loader import EnvFileLoader
from el_professor.config.runtime import RuntimeEnvironment, detect_runtime_environment, get_mcp_servers
from el_professor.config.settings import ElProfessorSettings
from el_professor.core.agent import AWS_QUESTION_PROMPT, ElProfessor
from el_professor.core.client.errors import create_user_friendly_message
from el_professor.core.client.responses import AgentResponse
from el_professor.core.config import ElProfessorConfig
from el_professor.utils.logging import setup_logging

# Create the main Typer application
app = typer.Typer(
    name="el-professor",
    help="ElProfessor - AWS expert assistant powered by Gemini and MCP servers",
    add_completion=False,
    rich_markup_mode="rich",
)

# Rich console for output
console = Console()

AgentAction = Callable[[ElProfessor], Awaitable[None]]


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]ElProfessor[/bold blue] version [green]{VERSION}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """
    ElProfessor - AWS expert assistant.

    Answers AWS questions and generates Terraform, CDK, architecture diagrams
    and documentation with the help of AWS Labs MCP servers.
    """
    loader = EnvFileLoader()
    loader.load_env_file()
    setup_logging(log_level or os.environ.get("LOG_LEVEL", "INFO"))


def _create_agent() -> ElProfessor:
    return ElProfessor(ElProfessorConfig())


async def _run_with_agent(action: AgentAction) -> None:
    """Start an agent, run the action and always shut the agent down."""
    try:
        agent = _create_agent()
    except Exception as e:
        console.print(f"[red]Error:[/red] {create_user_friendly_message(e)}")
        raise typer.Exit(1)

    try:
        with console.status("[dim]Connecting to MCP servers...[/dim]"):
            await agent.initialize()
        await action(agent)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {create_user_friendly_message(e)}")
        raise typer.Exit(1)
    finally:
        await agent.shutdown()


async def _print_stream(agent: ElProfessor, message: str) -> None:
    async for chunk in await agent.chat_stream(message):
        console.print(chunk, end="", markup=False, highlight=False)
    console.print()


def _one_shot(request: Callable[[ElProfessor], Awaitable[AgentResponse]], status: str) -> AgentAction:
    async def action(agent: ElProfessor) -> None:
        with console.status(f"[dim]{status}[/dim]"):
            response = await request(agent)
        print_response(console, response)

    return action


@app.command("chat")
def chat_command() -> None:
    """Start an interactive session."""
    asyncio.run(_run_with_agent(_interactive_chat))


async def _interactive_chat(agent: ElProfessor) -> None:
    """Read input until /exit, Ctrl+C or end of input."""
    session = InteractiveSession(agent, console)
    session.show_welcome()

    while True:
        try:
            user_input = typer.prompt("You", default="", show_default=False)
        except (KeyboardInterrupt, EOFError, typer.Abort):
            console.print("\n[dim]Goodbye![/dim]")
            break

        if not await session.handle_input(user_input):
            console.print("[dim]Goodbye![/dim]")
            break


@app.command("ask")
def ask_command(
    question: str = typer.Argument(..., help="AWS question to ask"),
    stream: bool = typer.Option(False, "--stream/--no-stream", help="Stream the response"),
) -> None:
    """Ask a single AWS question."""
    if stream:
        async def action(agent: ElProfessor) -> None:
            await _print_stream(agent, AWS_QUESTION_PROMPT.format(question=question))
    else:
        action = _one_shot(lambda agent: agent.ask_aws_question(question), "Thinking...")

    asyncio.run(_run_with_agent(action))


@app.command("terraform")
def terraform_command(
    description: str = typer.Argument(..., help="Infrastructure to generate Terraform for"),
) -> None:
    """Generate Terraform configuration."""
    action = _one_shot(
        lambda agent: agent.generate_terraform(description),
        "Generating Terraform configuration...",
    )
    asyncio.run(_run_with_agent(action))


@app.command("cdk")
def cdk_command(
    description: str = typer.Argument(..., help="Infrastructure to generate CDK code for"),
    language: str = typer.Option("typescript", "--language", "-l", help="CDK language"),
) -> None:
    """Generate AWS CDK code."""
    action = _one_shot(
        lambda agent: agent.generate_cdk(description, language),
        f"Generating CDK code ({language})...",
    )
    asyncio.run(_run_with_agent(action))


@app.command("diagram")
def diagram_command(
    description: str = typer.Argument(..., help="Architecture to diagram"),
) -> None:
    """Create an AWS architecture diagram."""
    action = _one_shot(
        lambda agent: agent.create_architecture_diagram(description),
        "Creating architecture diagram...",
    )
    asyncio.run(_run_with_agent(action))


@app.command("docs")
def docs_command(
    subject: str = typer.Argument(..., help="Code or description to document"),
) -> None:
    """Generate documentation."""
    action = _one_shot(
        lambda agent: agent.generate_documentation(subject),
        "Generating documentation...",
    )
    asyncio.run(_run_with_agent(action))


@app.command("servers")
def servers_command(
    runtime: Optional[RuntimeEnvironment] = typer.Option(
        None,
        "--runtime",
        "-r",
        help="Runtime environment to show (default: detected)",
    ),
) -> None:
    """List the MCP servers for the current runtime environment."""
    environment = runtime or detect_runtime_environment()

    table = Table(
        title=f"MCP Servers ({environment.value})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Command", style="green")
    table.add_column("Timeout", style="dim")
    table.add_column("Status", style="dim")

    for server in get_mcp_servers(environment):
        command_line = " ".join([server.command, *server.args])
        status = "disabled" if server.disabled else "enabled"
        table.add_row(server.name, command_line, f"{server.timeout}s", status)

    console.print(table)


@app.command("config")
def config_command() -> None:
    """Show the effective configuration."""
    try:
        settings = ElProfessorSettings()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Current Configuration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    for key, value in settings.to_dict().items():
        table.add_row(key, "Not set" if value is None else str(value))

    console.print(table)

    if not settings.is_configured:
        console.print("[yellow]GEMINI_API_KEY is not set.[/yellow] Run 'el-professor init' to create a .env file.")


@app.command("init")
def init_command(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing .env file"),
) -> None:
    """Create an example .env file in .el-professor/ of the current directory."""
    loader = EnvFileLoader()
    target_dir = Path.cwd() / EnvFileLoader.CONFIG_DIR_NAME
    env_file_path = target_dir / EnvFileLoader.ENV_FILE_NAME

    if env_file_path.exists() and not force:
        console.print(f"[yellow]Example .env file already exists:[/yellow] {env_file_path}")
        console.print("[dim]Use --force to overwrite it[/dim]")
        return

    try:
        created = loader.create_example_env_file(target_dir)
    except OSError as e:
        console.print(f"[red]Error creating .env file:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Created example .env file: {created}")
    console.print("\n[bold]Next steps:[/bold]")
    console.print(f"1. Edit {created} to set your GEMINI_API_KEY")
    console.print("2. Use 'el-professor config' to view your configuration")
    console.print("3. Use 'el-professor chat' to start a session")


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
