"""
LoongClaw CLI

Command-line interface for the LoongClaw agent.

Commands:
    loongclaw ask "message"        — Answer a single message
    loongclaw repl                 — Interactive session
    loongclaw script FILE          — Run each line of FILE as a message
    loongclaw tools                — List the available tools
    loongclaw classify "command"   — Show the policy tier of a shell command
    loongclaw approvals [--clear]  — Show or revoke remembered approvals
    loongclaw status               — Show configuration

Usage:
    pip install loongclaw
    DEEPSEEK_API_KEY=... loongclaw ask "list the workspace"
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import click

from loongclaw import __version__
from loongclaw.exceptions import LoongClawError
from loongclaw.logging import configure_logging
from loongclaw.tools.models import ToolCallRecord

HELP_TEXT = """
  Interactive commands:
    !help           Show this help
    !session        Show the current session
    !clear-session  Clear the current session history
    !workspace      Show the workspace directory
    clear           Clear the screen
    exit / quit     Leave

  Environment:
    LLM_PROVIDER     deepseek | glm | anthropic | openai
    WORKSPACE_DIR    Workspace for file tools (default: ./workspace)
    ALLOWED_PATHS    Sandbox roots, comma separated (default: WORKSPACE_DIR)
    SHELL_TIMEOUT    Shell timeout in ms (default: 30000)
    LOG_LEVEL        DEBUG | INFO | WARNING | ERROR
    SHOW_TOOLS       Print tool calls (true|false)
    JSON_OUTPUT      Print a JSON record after each answer (true|false)
"""


class CLIApp:
    """Wires settings, provider, tool router and agent for the CLI commands."""

    def __init__(self, settings):
        from loongclaw.agent import Agent, SessionStore
        from loongclaw.providers import create_provider
        from loongclaw.tools import create_tool_router

        self.settings = settings
        Path(settings.workspace_dir).mkdir(parents=True, exist_ok=True)
        self.router = create_tool_router(settings)
        if settings.show_tools:
            self.router.add_observer(_print_tool_call)
        self.agent = Agent(
            provider=create_provider(settings),
            tool_router=self.router,
            sessions=SessionStore(settings.short_term_size),
        )

    def print_banner(self) -> None:
        names = ", ".join(t["name"] for t in self.router.list_tools())
        _print_header("LoongClaw")
        print(f"  Workspace: {self.settings.workspace_path}")
        print(f"  Provider: {self.settings.llm_provider} ({', '.join(self.settings.models)})")
        print(f"  Tools: {names}")
        print(f"  Session: {self.settings.session_id}\n")

    async def run_once(self, message: str, json_output: bool = False) -> str:
        print(f"  > {message}\n")
        answer = await self.agent.process(message, self.settings.session_id)
        print(f"{answer}\n")
        if json_output or self.settings.json_output:
            print(json.dumps({
                "message": message,
                "response": answer,
                "sessionId": self.settings.session_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }, indent=2, ensure_ascii=False))
        return answer

    async def repl(self) -> None:
        print("  Interactive mode (exit or Ctrl+D to leave, !help for commands)\n")
        while True:
            try:
                line = await asyncio.to_thread(input, "loongclaw> ")
            except (EOFError, KeyboardInterrupt):
                print("\n  Bye!")
                return

            line = line.strip()
            if not line:
                continue
            if line in ("exit", "quit"):
                print("  Bye!")
                return
            if line == "clear":
                click.clear()
                continue
            if line.startswith("!"):
                self.handle_command(line[1:])
                continue

            try:
                await self.run_once(line)
            except LoongClawError as e:
                click.echo(f"  Error: {e}", err=True)

    def handle_command(self, text: str) -> None:
        command = text.strip().split(" ")[0] if text.strip() else ""
        if command == "help":
            print(HELP_TEXT)
        elif command == "session":
            self.show_session()
        elif command == "clear-session":
            self.agent.clear_history(self.settings.session_id)
            print("  Session cleared.\n")
        elif command == "workspace":
            print(f"  Workspace: {self.settings.workspace_path}\n")
        else:
            print(f"  Unknown command: {command}")
            print("  Type !help for the available commands.\n")

    def show_session(self) -> None:
        session = self.agent.sessions.get(self.settings.session_id)
        if session is None:
            print("  Current session: empty\n")
            return
        _print_header(f"Session: {session.session_id}")
        print(f"  Messages: {len(session.messages)}")
        print(f"  Exchanges: {session.exchanges}")
        print("\n  Last messages:")
        for i, msg in enumerate(session.messages[-5:], 1):
            content = msg["content"] if isinstance(msg["content"], str) else "[tool blocks]"
            print(f"  {i}. [{msg['role']}] {content[:50]}")
        print()


def _print_tool_call(record: ToolCallRecord) -> None:
    print(f"\n  [tool] {record.tool_name}")
    print(f"  args: {json.dumps(record.tool_input, ensure_ascii=False)}")
    if record.success:
        print(f"  result: {_truncate(json.dumps(record.result, ensure_ascii=False, default=str))}")
    else:
        print(f"  error ({record.error_type}): {record.error}")
    print(f"  took: {record.duration_ms:.0f}ms\n")


def _truncate(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _print_header(title: str) -> None:
    print(f"\n  {'=' * 60}")
    print(f"  {title}")
    print(f"  {'=' * 60}\n")


def _load_settings():
    from loongclaw.config import load_settings

    try:
        settings = load_settings()
    except LoongClawError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    return settings


def _build_app(settings) -> CLIApp:
    try:
        return CLIApp(settings)
    except LoongClawError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


async def _run_messages(app: CLIApp, messages: list[str], json_output: bool, pause: float = 0.0) -> None:
    for i, message in enumerate(messages):
        if i and pause:
            await asyncio.sleep(pause)
        await app.run_once(message, json_output=json_output)


@click.group()
@click.version_option(version=__version__, prog_name="loongclaw")
def cli() -> None:
    """LoongClaw — a command-line agent with a safety-gated tool belt."""
    pass


@cli.command()
@click.argument("message", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Also print a JSON record")
def ask(message: tuple[str, ...], json_output: bool) -> None:
    """Answer a single message."""
    settings = _load_settings()
    app = _build_app(settings)
    try:
        asyncio.run(_run_messages(app, [" ".join(message)], json_output))
    except LoongClawError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
def repl() -> None:
    """Start an interactive session."""
    settings = _load_settings()
    app = _build_app(settings)
    app.print_banner()
    asyncio.run(app.repl())


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Also print a JSON record per line")
def script(file: str, json_output: bool) -> None:
    """Run each non-empty, non-comment line of FILE as a message."""
    settings = _load_settings()
    lines = [
        line.strip()
        for line in Path(file).read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    app = _build_app(settings)
    print(f"  Running script: {file} ({len(lines)} messages)\n")
    try:
        asyncio.run(_run_messages(app, lines, json_output, pause=1.0))
    except LoongClawError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    print("  Script finished.\n")


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Print as JSON")
def tools(json_output: bool) -> None:
    """List the tools offered to the model."""
    from loongclaw.tools import create_tool_router

    settings = _load_settings()
    router = create_tool_router(settings)
    if json_output:
        print(json.dumps(router.list_tools(), indent=2, ensure_ascii=False))
        return
    _print_header("Available Tools")
    for tool in router.list_tools():
        required = ", ".join(tool["schema"].get("required", [])) or "-"
        print(f"  {tool['name']:18s} {tool['description']}")
        print(f"  {'':18s} required: {required}")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def classify(command: tuple[str, ...]) -> None:
    """Show how the command policy treats COMMAND (nothing is executed)."""
    from loongclaw.exceptions import IllegalCommandError
    from loongclaw.tools.policy import check_command_syntax, classify_command, describe_tier

    raw = " ".join(command)
    try:
        normalized = check_command_syntax(raw)
    except IllegalCommandError as e:
        click.echo(f"Error: rejected: {e.message}", err=True)
        sys.exit(1)
    tier = classify_command(normalized)
    print(f"  {tier.value}: {describe_tier(tier)}")


@cli.command()
@click.option("--clear", "clear_all", is_flag=True, help="Revoke every remembered approval")
def approvals(clear_all: bool) -> None:
    """Show (or revoke) remembered gray-command approvals."""
    from loongclaw.tools.approvals import ApprovalStore

    settings = _load_settings()
    store = ApprovalStore(settings.approval_file)

    if clear_all:
        removed = asyncio.run(store.revoke_all())
        print(f"  Revoked {removed} approval(s).")
        return

    records = asyncio.run(store.load())
    _print_header("Remembered Approvals")
    if not records:
        print("  No approvals on record.")
        return
    for signature, record in sorted(records.items()):
        expires = datetime.fromtimestamp(record.expires_at / 1000, tz=timezone.utc)
        print(f"  {signature}")
        print(f"      expires {expires.isoformat(timespec='seconds')}")


@cli.command()
def status() -> None:
    """Show LoongClaw configuration."""
    settings = _load_settings()
    _print_header("LoongClaw Status")
    print(f"  Version: {__version__}")
    print(f"  Python: {sys.version.split()[0]}")
    print(f"  Workspace: {settings.workspace_path}")
    print(f"  Sandbox roots: {', '.join(settings.allowed_paths)}")
    print(f"  Approval file: {settings.approval_file}")
    print(f"  Shell timeout: {settings.shell_timeout_ms}ms")
    print(f"  Provider: {settings.llm_provider} ({settings.provider_format} format)")
    print(f"  Models: {', '.join(settings.models)}")
    key = settings.api_key
    if key:
        masked = key[:4] + "..." + key[-4:] if len(key) > 10 else "***"
        print(f"  API key: {masked}")
    else:
        print("  API key: NOT SET")


if __name__ == "__main__":
    cli()
