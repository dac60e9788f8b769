"""
LoongClaw Command Policy

Classifies shell command strings into four risk tiers:

- GREEN: read-only inspection commands, always allowed
- WHITE: allowed by a structural rule (read-only subcommand of a known
  tool) or because no rule recognizes the command name
- GRAY: needs an explicit confirmation (once, or remembered for 7 days)
- BLACK: refused outright, whatever the arguments

The tables are constant data and classify_command is a pure function of
the normalized command. Nothing here parses shell syntax: commands are
whitespace-tokenized, and check_command_syntax rejects anything that a
shell would treat specially before classification happens.

Unknown command names default to WHITE. A dangerous binary that is
missing from BLACK_COMMANDS is therefore auto-allowed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from loongclaw.exceptions import IllegalCommandError


class CommandTier(str, Enum):
    """Risk tier of a shell command."""
    GREEN = "green"
    WHITE = "white"
    GRAY = "gray"
    BLACK = "black"


GREEN_COMMANDS = frozenset({
    "ls", "pwd", "echo", "cat", "head", "tail", "grep", "wc", "rg",
    "which", "whoami", "uname", "date", "uptime", "df", "du",
})

BLACK_COMMANDS = frozenset({
    "rm", "mv", "dd", "truncate", "mkfs", "shutdown", "reboot",
    "kill", "pkill", "killall", "chmod", "chown",
})

GRAY_COMMANDS = frozenset({
    "npm", "pnpm", "yarn", "bun", "npx", "node", "python", "python3",
    "pip", "pip3", "go", "cargo", "rustc", "javac", "mvn", "gradle",
    "make", "cmake", "docker", "docker-compose", "kubectl", "git", "deno",
})

GIT_READ_ONLY = frozenset({"status", "diff", "log", "show"})

GIT_MUTATING = frozenset({
    "checkout", "switch", "pull", "fetch", "merge", "rebase", "reset",
    "push", "commit", "tag", "branch", "stash", "cherry-pick", "revert",
    "clean", "init", "clone",
})

PACKAGE_MANAGERS = frozenset({"npm", "pnpm", "yarn", "bun"})

PACKAGE_SCRIPTS_READ_ONLY = frozenset({"lint", "test", "typecheck", "format", "fmt", "check"})

PACKAGE_BARE_READ_ONLY = frozenset({"test", "lint"})

PYTHON_INSTALLERS = frozenset({"pip", "pip3"})

TIER_DESCRIPTIONS = {
    CommandTier.GREEN: "Read-only inspection command, always allowed",
    CommandTier.WHITE: "Allowed without confirmation",
    CommandTier.GRAY: "Requires confirmation (approval=once or approval=remember_7d)",
    CommandTier.BLACK: "Refused: destructive or process/system-control command",
}

SHELL_METACHARACTERS = re.compile(r"[;&|<>`$]")
SAFE_TOKEN = re.compile(r"^[a-zA-Z0-9._/-]+$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class CommandParts:
    """Whitespace tokens of a normalized command."""
    tokens: tuple[str, ...]
    command_name: str = ""
    sub_command: str = ""
    sub_sub_command: str = ""


def normalize_command(command: str) -> str:
    """Trim and collapse internal whitespace runs to single spaces."""
    return _WHITESPACE.sub(" ", command.strip())


def split_command(command: str) -> CommandParts:
    """Tokenize a command; missing positions are empty strings."""
    normalized = normalize_command(command)
    tokens = tuple(normalized.split(" ")) if normalized else ()
    padded = tokens + ("", "", "")
    return CommandParts(
        tokens=tokens,
        command_name=padded[0],
        sub_command=padded[1],
        sub_sub_command=padded[2],
    )


def classify_command(command: str) -> CommandTier:
    """Assign a risk tier to a command string.

    BLACK and GREEN membership are checked first, so no subcommand rule
    can move a listed name into another tier. Structural git and
    package-manager rules run before the generic GRAY table.
    """
    parts = split_command(command)
    name = parts.command_name

    if not name:
        return CommandTier.GRAY
    if name in BLACK_COMMANDS:
        return CommandTier.BLACK
    if name in GREEN_COMMANDS:
        return CommandTier.GREEN

    if name == "git":
        if parts.sub_command in GIT_READ_ONLY:
            return CommandTier.WHITE
        if parts.sub_command in GIT_MUTATING:
            return CommandTier.GRAY

    if name in PACKAGE_MANAGERS:
        if parts.sub_command == "run" and parts.sub_sub_command in PACKAGE_SCRIPTS_READ_ONLY:
            return CommandTier.WHITE
        if parts.sub_command in PACKAGE_BARE_READ_ONLY:
            return CommandTier.WHITE
        # install/update/publish/run/exec and everything unmatched
        return CommandTier.GRAY

    if name in PYTHON_INSTALLERS:
        return CommandTier.GRAY

    if name in GRAY_COMMANDS:
        return CommandTier.GRAY

    return CommandTier.WHITE


def check_command_syntax(command: str) -> str:
    """Reject commands a shell would interpret, return the normalized form.

    Every token must consist only of letters, digits, '.', '_', '/' and '-'.
    This forbids chaining, redirection, substitution and quoting entirely
    instead of trying to escape them.

    Raises:
        IllegalCommandError: empty command, shell metacharacter, or a
            token outside the safe character set.
    """
    stripped = (command or "").strip()
    if not stripped:
        raise IllegalCommandError("command must not be empty", command=command or "")
    if SHELL_METACHARACTERS.search(stripped):
        raise IllegalCommandError("command contains illegal characters", command=stripped)

    normalized = normalize_command(stripped)
    for token in normalized.split(" "):
        if not SAFE_TOKEN.match(token):
            raise IllegalCommandError(
                f"command contains illegal argument: {token!r}",
                command=normalized,
                details={"token": token},
            )
    return normalized


def describe_tier(tier: CommandTier) -> str:
    """Human-readable description of a tier, used in CLI output and refusals."""
    return TIER_DESCRIPTIONS.get(tier, "Unknown tier")
