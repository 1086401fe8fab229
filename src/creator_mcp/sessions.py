"""
In-memory registry of FigJam plugin sessions.

A session links an agent (which only knows a short code) to a plugin
instance connected over WebSocket. Commands sent while the plugin is away
are queued on the session and flushed when it joins.
"""

from __future__ import annotations

import secrets
import string
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol


CODE_LENGTH = 6
_CODE_ALPHABET = string.ascii_uppercase + string.digits


class Channel(Protocol):
    """The part of a WebSocket the bridge needs."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


@dataclass
class SessionContext:
    """Meeting context an agent pushes for the plugin to draw from."""
    transcript: Optional[str] = None
    client_name: Optional[str] = None
    project_name: Optional[str] = None
    summary: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    updated_at: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "transcript": self.transcript,
            "clientName": self.client_name,
            "projectName": self.project_name,
            "summary": self.summary,
            "metadata": self.metadata,
            "updatedAt": self.updated_at,
        }


@dataclass
class PluginSession:
    code: str
    created_at: float
    last_ping: float
    channel: Optional[Channel] = None
    pending: list[dict[str, Any]] = field(default_factory=list)
    context: Optional[SessionContext] = None

    @property
    def connected(self) -> bool:
        return self.channel is not None


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class SessionStore:
    """Thread-safe session registry with idle expiry.

    Args:
        timeout: Seconds without a ping after which a session is stale.
        clock: Time source, injectable for tests.
    """

    def __init__(self, timeout: float = 300, clock: Callable[[], float] = time.time) -> None:
        self.timeout = timeout
        self._clock = clock
        self._sessions: dict[str, PluginSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._sessions

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def _new_code(self) -> str:
        while True:
            code = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(CODE_LENGTH))
            if code not in self._sessions:
                return code

    def create(self) -> PluginSession:
        now = self._clock()
        with self._lock:
            code = self._new_code()
            session = PluginSession(code=code, created_at=now, last_ping=now)
            self._sessions[code] = session
        return session

    def get(self, code: Optional[str]) -> Optional[PluginSession]:
        return self._sessions.get(normalize_code(code))

    def attach(self, code: Optional[str], channel: Channel) -> Optional[tuple[PluginSession, list[dict[str, Any]]]]:
        """Bind *channel* to a session and hand back its queued commands.

        Returns None for unknown codes.
        """
        key = normalize_code(code)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            session.channel = channel
            session.last_ping = self._clock()
            pending = session.pending
            session.pending = []
        return session, pending

    def detach(self, code: Optional[str], channel: Channel) -> bool:
        """Unbind *channel*; a newer channel on the same session is left alone."""
        with self._lock:
            session = self._sessions.get(normalize_code(code))
            if session is None or session.channel is not channel:
                return False
            session.channel = None
        return True

    def touch(self, code: Optional[str]) -> bool:
        with self._lock:
            session = self._sessions.get(normalize_code(code))
            if session is None:
                return False
            session.last_ping = self._clock()
        return True

    def enqueue(self, code: Optional[str], command: dict[str, Any]) -> bool:
        """Queue *command* until the plugin joins. Unknown codes are refused."""
        with self._lock:
            session = self._sessions.get(normalize_code(code))
            if session is None:
                return False
            session.pending.append(command)
        return True

    def set_context(
        self,
        code: Optional[str],
        *,
        transcript: Optional[str] = None,
        client_name: Optional[str] = None,
        project_name: Optional[str] = None,
        summary: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[SessionContext]:
        """Replace the session's context. Returns None for unknown codes."""
        with self._lock:
            session = self._sessions.get(normalize_code(code))
            if session is None:
                return None
            session.context = SessionContext(
                transcript=transcript,
                client_name=client_name,
                project_name=project_name,
                summary=summary,
                metadata=metadata,
                updated_at=self._clock(),
            )
            return session.context

    def get_context(self, code: Optional[str]) -> Optional[SessionContext]:
        session = self._sessions.get(normalize_code(code))
        return session.context if session else None

    def expire(self, now: Optional[float] = None) -> list[PluginSession]:
        """Evict stale sessions and return them so callers can close channels."""
        now = self._clock() if now is None else now
        with self._lock:
            stale = [
                s for s in self._sessions.values()
                if now - s.last_ping > self.timeout
            ]
            for s in stale:
                del self._sessions[s.code]
        return stale
