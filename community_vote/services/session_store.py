import json
import logging
from datetime import datetime
from typing import MutableMapping, Optional

from ..domain import ResidentSession
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "resident_session"


class SessionStore:
    """
    One resident session per client, kept in a single slot of ``storage``.

    ``storage`` is Flask's signed cookie session during a request; tests
    pass a plain dict per simulated client.
    """

    def __init__(self, storage: MutableMapping, key: str = DEFAULT_SESSION_KEY):
        self._storage = storage
        self._key = key

    def save(self, session: ResidentSession) -> None:
        self._storage[self._key] = json.dumps(session.to_record())

    def load(self, now: Optional[datetime] = None) -> Optional[ResidentSession]:
        raw = self._storage.get(self._key)
        if raw is None:
            return None

        try:
            session = ResidentSession.from_record(json.loads(raw))
        except (TypeError, ValueError, KeyError, AttributeError):
            logger.warning("Discarding unreadable resident session")
            self.clear()
            return None

        if session.is_expired(now or utcnow()):
            self.clear()
            return None
        return session

    def clear(self) -> None:
        self._storage.pop(self._key, None)
