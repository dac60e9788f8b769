"""
LoongClaw Approval Store

Persisted memory of gray-tier commands the user chose to remember.

The store is a single JSON object mapping an approval signature
("<working directory>::<normalized command>") to {"expiresAt": <epoch ms>}.
The whole file is read on every lookup so separate invocations see each
other's grants, and written back in full (temp file + os.replace) after
every change. Expired entries are dropped on load and the pruned mapping
is written back immediately.

There is no locking. Two concurrent grants for different commands can
race on save and the last write wins; the lost approval simply has to be
granted again.

A missing, unreadable or corrupt file behaves as an empty store. Write
failures are logged and swallowed.
"""

from __future__ import annotations

import asyncio
import json
import math
import os
import tempfile
import time
from collections.abc import Callable, Mapping
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from loongclaw.exceptions import PersistenceError
from loongclaw.logging import get_logger
from loongclaw.tools.policy import normalize_command

logger = get_logger("loongclaw.approvals")

DEFAULT_APPROVAL_FILE = "sessions/command-approvals.json"
DEFAULT_APPROVAL_WINDOW = timedelta(days=7)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ApprovalMode(str, Enum):
    """Per-call confirmation supplied with a gray-tier command."""
    ONCE = "once"
    REMEMBER_7D = "remember_7d"

    @classmethod
    def parse(cls, value: Any) -> ApprovalMode | None:
        """Parse a caller-supplied approval flag; unknown values mean no confirmation."""
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("-", "_")
        for mode in cls:
            if mode.value == normalized:
                return mode
        return None


class ApprovalRecord(BaseModel):
    """A remembered approval, valid while expires_at lies in the future."""
    model_config = ConfigDict(populate_by_name=True)

    expires_at: int = Field(alias="expiresAt")

    def is_valid(self, now_ms: int | None = None) -> bool:
        return self.expires_at > (now_ms if now_ms is not None else _now_ms())

    def to_json(self) -> dict[str, int]:
        return {"expiresAt": self.expires_at}


class ApprovalStore:
    """File-backed approval cache with explicit load / mutate / save steps.

    Callers go through load(), lookup(), grant() and save() only, so the
    backing file can later be replaced by a locked or database-backed
    store without touching the execution pipeline.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] = DEFAULT_APPROVAL_FILE,
        window: timedelta = DEFAULT_APPROVAL_WINDOW,
        clock: Callable[[], int] = _now_ms,
    ):
        self._path = Path(path)
        self._window_ms = int(window.total_seconds() * 1000)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @staticmethod
    def signature(command: str, cwd: str | os.PathLike[str] | None = None) -> str:
        """Key for "this normalized command, run from this directory"."""
        directory = os.fspath(cwd) if cwd is not None else os.getcwd()
        return f"{directory}::{normalize_command(command)}"

    async def load(self) -> dict[str, ApprovalRecord]:
        """Read the store, dropping expired or malformed entries.

        If anything was dropped, the pruned mapping is saved right away.
        """
        try:
            raw = await asyncio.to_thread(self._read_raw)
        except PersistenceError as e:
            logger.warning(str(e), extra={"event_type": "APPROVALS_UNREADABLE"})
            return {}

        if raw is None:
            return {}

        now = self._clock()
        kept: dict[str, ApprovalRecord] = {}
        for signature, value in raw.items():
            record = self._parse_record(value)
            if record is not None and record.is_valid(now):
                kept[signature] = record

        if len(kept) != len(raw):
            logger.info(
                "Pruned %d expired approval(s)", len(raw) - len(kept),
                extra={"event_type": "APPROVALS_PRUNED"},
            )
            await self.save(kept)
        return kept

    async def save(self, approvals: Mapping[str, ApprovalRecord]) -> bool:
        """Overwrite the store with approvals. Returns False if the write failed."""
        payload = {sig: record.to_json() for sig, record in approvals.items()}
        try:
            await asyncio.to_thread(self._write_raw, payload)
        except PersistenceError as e:
            logger.warning(str(e), extra={"event_type": "APPROVALS_UNWRITABLE"})
            return False
        return True

    async def lookup(self, signature: str) -> ApprovalRecord | None:
        """Return the valid record for signature, if any."""
        approvals = await self.load()
        record = approvals.get(signature)
        if record is not None and record.is_valid(self._clock()):
            logger.debug(
                "Approval cache hit", extra={"signature": signature, "event_type": "APPROVAL_HIT"}
            )
            return record
        return None

    async def grant(self, signature: str) -> ApprovalRecord:
        """Remember signature for the approval window and persist it."""
        approvals = await self.load()
        record = ApprovalRecord(expires_at=self._clock() + self._window_ms)
        approvals[signature] = record
        await self.save(approvals)
        logger.info(
            "Approval remembered", extra={"signature": signature, "event_type": "APPROVAL_GRANTED"}
        )
        return record

    async def revoke_all(self) -> int:
        """Drop every remembered approval. Returns how many were valid."""
        approvals = await self.load()
        await self.save({})
        return len(approvals)

    @staticmethod
    def _parse_record(value: Any) -> ApprovalRecord | None:
        if not isinstance(value, dict):
            return None
        expires = value.get("expiresAt")
        # bool is an int subclass but never a timestamp
        if isinstance(expires, bool) or not isinstance(expires, (int, float)):
            return None
        if not math.isfinite(expires):
            return None
        return ApprovalRecord(expires_at=int(expires))

    def _read_raw(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise PersistenceError(str(self._path), f"read failed: {e}") from e
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            logger.warning(
                "Approval file is not valid UTF-8 JSON, treating it as empty",
                extra={"path": str(self._path), "event_type": "APPROVALS_CORRUPT"},
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _write_raw(self, payload: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self._path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise PersistenceError(str(self._path), f"write failed: {e}") from e
