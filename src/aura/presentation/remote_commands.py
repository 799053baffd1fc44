"""Lock-screen style remote commands and now-playing metadata."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from aura.models.enums import RemoteCommand, SessionState

if TYPE_CHECKING:
    from aura.core.client import VoiceSessionClient

logger = logging.getLogger("aura.presentation")

CommandHandler = Callable[[], Any]


class NowPlayingInfo(BaseModel):
    """Metadata shown by the platform's now-playing surface."""

    title: str = "Limi AI Assistant"
    artist: str = "Idle"
    is_live_stream: bool = True

    @classmethod
    def for_activity(cls, active: bool) -> NowPlayingInfo:
        return cls(artist="Listening & Speaking" if active else "Idle")


class RemoteCommandCenter(ABC):
    """Platform surface delivering play/pause/stop commands."""

    @abstractmethod
    def enable(self, command: RemoteCommand, handler: CommandHandler) -> None:
        """Enable *command* and route it to *handler*."""
        ...

    @abstractmethod
    def disable_all(self) -> None:
        """Disable every command and drop their handlers."""
        ...

    @abstractmethod
    def set_now_playing(self, info: NowPlayingInfo) -> None: ...


class MockRemoteCommandCenter(RemoteCommandCenter):
    """In-memory command center for tests."""

    def __init__(self) -> None:
        self.handlers: dict[RemoteCommand, CommandHandler] = {}
        self.now_playing: list[NowPlayingInfo] = []

    def enable(self, command: RemoteCommand, handler: CommandHandler) -> None:
        self.handlers[command] = handler

    def disable_all(self) -> None:
        self.handlers.clear()

    def set_now_playing(self, info: NowPlayingInfo) -> None:
        self.now_playing.append(info)

    @property
    def current(self) -> NowPlayingInfo | None:
        return self.now_playing[-1] if self.now_playing else None

    async def simulate(self, command: RemoteCommand) -> bool:
        """Deliver *command*. Returns False when it is not enabled."""
        handler = self.handlers.get(command)
        if handler is None:
            return False
        result = handler()
        if hasattr(result, "__await__"):
            await result
        return True


class RemoteCommandBinding:
    """Connects a command center to a :class:`VoiceSessionClient`.

    Play starts the session, pause and stop end it. Now-playing metadata
    follows the session state.
    """

    def __init__(self, client: VoiceSessionClient, center: RemoteCommandCenter) -> None:
        self._client = client
        self._center = center
        self._bound = False
        self._listening = False
        client.on_state_change(self._handle_state_change)

    @property
    def bound(self) -> bool:
        return self._bound

    def bind(self) -> None:
        if self._bound:
            return
        self._center.enable(RemoteCommand.PLAY, self._client.start)
        self._center.enable(RemoteCommand.PAUSE, self._client.stop)
        self._center.enable(RemoteCommand.STOP, self._client.stop)
        self._bound = True
        self._listening = self._client.state == SessionState.CONNECTED
        self._center.set_now_playing(NowPlayingInfo.for_activity(self._listening))
        logger.debug("Remote commands bound")

    def unbind(self) -> None:
        if not self._bound:
            return
        self._center.disable_all()
        self._bound = False
        self._listening = False
        self._center.set_now_playing(NowPlayingInfo.for_activity(False))
        logger.debug("Remote commands unbound")

    def _handle_state_change(self, old: SessionState, new: SessionState) -> None:
        if not self._bound:
            return
        listening = new == SessionState.CONNECTED
        if listening == self._listening:
            return
        self._listening = listening
        self._center.set_now_playing(NowPlayingInfo.for_activity(listening))
