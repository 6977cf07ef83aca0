"""
Session registry.

Maps MCP session identifiers to the live transport serving that session.
Entries are added once, when a transport reports that its session was
initialized, and removed once, when the transport closes. The registry never
expires entries on its own.

None of the operations suspend, so the registry is safe to share between the
requests interleaved on one event loop without locking.
"""

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class SessionExistsError(KeyError):
    """Raised when registering a session identifier that is already live."""
    pass


class SessionRegistry(Generic[T]):
    def __init__(self) -> None:
        self._transports: dict[str, T] = {}

    def get(self, session_id: str) -> T | None:
        return self._transports.get(session_id)

    def put(self, session_id: str, transport: T) -> None:
        if session_id in self._transports:
            raise SessionExistsError(session_id)
        self._transports[session_id] = transport

    def remove(self, session_id: str) -> T | None:
        """Remove `session_id`; a no-op if it is not registered."""
        return self._transports.pop(session_id, None)

    def session_ids(self) -> list[str]:
        return list(self._transports)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._transports

    def __len__(self) -> int:
        return len(self._transports)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._transports))
