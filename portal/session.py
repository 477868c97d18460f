"""
Session context: the bearer token and user record of whoever is signed in.

Views never read `request.session` directly; they receive a
`SessionContext` through `with_session_context`.
"""
import json
import logging
from functools import wraps
from typing import Callable, Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect

from .models import SessionUser

logger = logging.getLogger(__name__)

TOKEN_KEY = 'token'
USER_KEY = 'user'

ViewFunc = Callable[..., HttpResponse]


class SessionContext:
    def __init__(self, store):
        self._store = store

    @classmethod
    def from_request(cls, request: HttpRequest) -> 'SessionContext':
        return cls(request.session)

    @property
    def token(self) -> Optional[str]:
        return self._store.get(TOKEN_KEY) or None

    @property
    def user(self) -> Optional[SessionUser]:
        raw = self._store.get(USER_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError:
            logger.warning("Discarding malformed session user record")
            return None
        if not isinstance(data, dict):
            return None
        return SessionUser.from_json(data)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def store(self, token: str, user: SessionUser) -> None:
        self._store[TOKEN_KEY] = token
        self._store[USER_KEY] = json.dumps(user.to_json())

    def clear(self) -> None:
        self._store.pop(TOKEN_KEY, None)
        self._store.pop(USER_KEY, None)


def with_session_context(required: bool = False) -> Callable[[ViewFunc], ViewFunc]:
    """
    Pass the current `SessionContext` to the view as `session_ctx`.

    With `required=True` an unauthenticated request is sent to the login
    route and the view never runs.
    """

    def decorator(view_func: ViewFunc) -> ViewFunc:
        @wraps(view_func)
        def _wrapped(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            session_ctx = SessionContext.from_request(request)
            if required and not session_ctx.is_authenticated:
                return redirect(settings.LOGIN_URL)
            return view_func(request, *args, session_ctx=session_ctx, **kwargs)

        return _wrapped

    return decorator
