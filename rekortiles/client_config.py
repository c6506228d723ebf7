"""Client settings and an HTTP session that sets the User-Agent header."""

from __future__ import annotations

from dataclasses import dataclass

import requests
from requests.adapters import BaseAdapter


@dataclass(frozen=True)
class ClientConfig:
    """Options shared by the log clients; a timeout of None means no limit."""

    user_agent: str = ""
    timeout: float | None = None


class _UserAgentAdapter(BaseAdapter):
    """Sets the User-Agent on every request before handing it on."""

    def __init__(self, inner: BaseAdapter, user_agent: str) -> None:
        super().__init__()
        self._inner = inner
        self._user_agent = user_agent

    def send(self, request, **kwargs):
        request.headers["User-Agent"] = self._user_agent
        return self._inner.send(request, **kwargs)

    def close(self) -> None:
        self._inner.close()


def user_agent_session(
    user_agent: str, session: requests.Session | None = None
) -> requests.Session:
    """Return a session whose requests all carry the given User-Agent.

    With an empty user agent the session is returned as it is.
    """
    if session is None:
        session = requests.Session()
    if not user_agent:
        return session
    for prefix in ("https://", "http://"):
        inner = session.get_adapter(prefix)
        session.mount(prefix, _UserAgentAdapter(inner, user_agent))
    return session