"""Server-held sessions for Flask.

The browser only ever sees a signed, random session id. The session data
lives in a store keyed by that id and is forgotten after a period of
inactivity.
"""

from __future__ import annotations

import secrets
import time
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple

from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from werkzeug.datastructures import CallbackDict


class ServerSession(CallbackDict, SessionMixin):
    def __init__(self, initial=None, sid: Optional[str] = None, new: bool = False):
        def on_update(self):
            self.modified = True

        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid or secrets.token_urlsafe(32)
        self.new = new
        self.modified = False
        self.stale_sid: Optional[str] = None

    def regenerate(self) -> None:
        """Move the session to a fresh id; the old one is dropped on save."""
        if self.stale_sid is None:
            self.stale_sid = self.sid
        self.sid = secrets.token_urlsafe(32)
        self.modified = True


class MemorySessionStore:
    """In-process ``sid -> data`` map with an inactivity window."""

    def __init__(self, lifetime: timedelta, clock: Callable[[], float] = time.monotonic):
        self.lifetime = lifetime.total_seconds()
        self.clock = clock
        self._sessions: Dict[str, Tuple[Dict, float]] = {}

    def get(self, sid: str) -> Optional[Dict]:
        entry = self._sessions.get(sid)
        if entry is None:
            return None
        data, last_seen = entry
        if self.clock() - last_seen > self.lifetime:
            del self._sessions[sid]
            return None
        return dict(data)

    def prune(self) -> None:
        cutoff = self.clock() - self.lifetime
        for sid in [s for s, (_, last_seen) in self._sessions.items() if last_seen < cutoff]:
            del self._sessions[sid]

    def set(self, sid: str, data: Dict) -> None:
        self.prune()
        self._sessions[sid] = (dict(data), self.clock())

    def delete(self, sid: str) -> None:
        self._sessions.pop(sid, None)


class ServerSessionInterface(SessionInterface):
    salt = "bareblog-session"

    def __init__(self, store: MemorySessionStore):
        self.store = store

    def get_signer(self, app) -> Optional[Signer]:
        if not app.secret_key:
            return None
        return Signer(app.secret_key, salt=self.salt)

    def open_session(self, app, request):
        signer = self.get_signer(app)
        if signer is None:
            return None
        self.store.prune()

        cookie = request.cookies.get(self.get_cookie_name(app))
        if cookie:
            try:
                sid = signer.unsign(cookie).decode("utf-8")
            except BadSignature:
                sid = None
            if sid:
                data = self.store.get(sid)
                if data is not None:
                    return ServerSession(data, sid=sid)
        return ServerSession(new=True)

    def save_session(self, app, session, response):
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if session.stale_sid is not None:
            self.store.delete(session.stale_sid)

        if not session:
            if session.modified:
                self.store.delete(session.sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        response.vary.add("Cookie")
        # every request with a live session restarts the inactivity window
        self.store.set(session.sid, session)

        signed = self.get_signer(app).sign(session.sid).decode("utf-8")
        response.set_cookie(
            name,
            signed,
            max_age=int(self.store.lifetime),
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )
