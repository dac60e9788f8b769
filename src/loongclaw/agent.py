"""
LoongClaw Conversation Agent

Runs the tool-use loop between the model and the SafeToolRouter. The
model never reaches a handler directly: every tool_use block goes
through SafeToolRouter.execute(), and refusals are fed back to the
model as error results so it can ask the user for confirmation or
change course.

Session memory is a per-session message list trimmed to the most
recent exchanges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from loongclaw.exceptions import ProviderError
from loongclaw.logging import get_logger
from loongclaw.providers.base import LLMProvider
from loongclaw.tools.models import ToolCallRequest
from loongclaw.tools.router import SafeToolRouter

logger = get_logger("loongclaw.agent")

MAX_TOOL_ROUNDS = 10  # Max tool_use round-trips per user message

SYSTEM_PROMPT = (
    "You are LoongClaw, a command-line assistant with access to local tools. "
    "File paths are relative to the workspace. Shell commands are single commands "
    "without pipes, redirection or chaining. Commands are classified into tiers: "
    "green and white run directly, gray commands need the user's confirmation "
    "(pass approval='once' or approval='remember_7d' only after the user agreed), "
    "and black commands are always refused, so ask the user to run them. "
    "Answer concisely."
)


@dataclass
class Session:
    """Message history of one conversation."""
    session_id: str
    messages: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    exchanges: int = 0


class SessionStore:
    """In-memory sessions, each trimmed to the last short_term_size exchanges.

    An exchange is a user message plus everything up to the final answer,
    so tool_use and tool_result blocks are never separated by trimming.
    """

    def __init__(self, short_term_size: int = 10):
        self._short_term_size = short_term_size
        self._sessions: dict[str, Session] = {}

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        if session_id not in self._sessions:
            self._sessions[session_id] = Session(session_id=session_id)
        return self._sessions[session_id]

    def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def trim(self, session: Session) -> None:
        starts = [i for i, m in enumerate(session.messages) if _is_user_turn(m)]
        if len(starts) > self._short_term_size:
            cut = starts[-self._short_term_size]
            session.messages = session.messages[cut:]

    def __len__(self) -> int:
        return len(self._sessions)


def _is_user_turn(message: dict[str, Any]) -> bool:
    """A plain user message (not a tool_result carrier)."""
    return message.get("role") == "user" and isinstance(message.get("content"), str)


class Agent:
    """Conversational agent bound to one provider and one tool router."""

    def __init__(
        self,
        provider: LLMProvider,
        tool_router: SafeToolRouter,
        sessions: SessionStore | None = None,
        system_prompt: str = SYSTEM_PROMPT,
        max_tokens: int = 4096,
    ):
        self.provider = provider
        self.tools = tool_router
        self.sessions = sessions or SessionStore()
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens

    async def process(self, message: str, session_id: str = "default") -> str:
        """Answer one user message, running tool calls as the model requests them.

        Returns the model's final text.
        """
        session = self.sessions.get_or_create(session_id)
        checkpoint = len(session.messages)
        try:
            answer = await self._run_exchange(session, message)
        except ProviderError:
            # drop the unanswered turn so the history keeps alternating roles
            del session.messages[checkpoint:]
            raise

        session.exchanges += 1
        self.sessions.trim(session)
        return answer

    async def _run_exchange(self, session: Session, message: str) -> str:
        messages = session.messages
        messages.append({"role": "user", "content": message})
        schemas = self.tools.registry.get_schemas()

        response = await self.provider.create_message(
            messages,
            max_tokens=self.max_tokens,
            system=self.system_prompt,
            tools=schemas,
        )

        rounds = 0
        while response.has_tool_use and rounds < MAX_TOOL_ROUNDS:
            rounds += 1
            messages.append({
                "role": "assistant",
                "content": [block.to_message_block() for block in response.content],
            })

            tool_results = []
            for block in response.tool_calls:
                result = await self.tools.execute(ToolCallRequest(
                    tool_name=block.tool_name,
                    tool_input=block.tool_input,
                    tool_use_id=block.tool_use_id,
                    session_id=session.session_id,
                ))
                tool_results.append({
                    "type": "tool_result",
                    "tool_use_id": result.tool_use_id,
                    "content": result.content,
                    "is_error": result.is_error,
                })
            messages.append({"role": "user", "content": tool_results})

            response = await self.provider.create_message(
                messages,
                max_tokens=self.max_tokens,
                system=self.system_prompt,
                tools=schemas,
            )

        if response.has_tool_use:
            logger.warning(
                "Stopped after %d tool rounds", MAX_TOOL_ROUNDS,
                extra={"session_id": session.session_id, "event_type": "TOOL_ROUNDS_EXHAUSTED"},
            )

        answer = response.text
        messages.append({"role": "assistant", "content": answer or "(no answer)"})
        return answer

    def clear_history(self, session_id: str) -> None:
        self.sessions.clear(session_id)
