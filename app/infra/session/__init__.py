from app.infra.session.store import (
    InMemorySessionStore,
    SessionStore,
    get_session_store,
    reset_session_store,
)

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "get_session_store",
    "reset_session_store",
]
