"""
Invalidation signals for committed poll and vote inserts.

A signal carries only the table and poll id so subscribers can filter;
they re-query for data. Delivery may repeat, so receivers must treat a
signal as "refresh", never as "apply this row".
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session, object_session

logger = logging.getLogger(__name__)

PENDING_KEY = "community_vote.pending_changes"


@dataclass(frozen=True)
class Change:
    table: str
    poll_id: Optional[str] = None


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, callback: Callable[[Change], None],
                 poll_id: Optional[str] = None):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.poll_id = poll_id

    def matches(self, change: Change) -> bool:
        if change.table != self.table:
            return False
        return self.poll_id is None or self.poll_id == change.poll_id

    def unsubscribe(self) -> None:
        self.feed._remove(self)


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []
        self._watched = set()
        self._session_bound = False

    def subscribe(self, table: str, callback: Callable[[Change], None],
                  poll_id=None) -> Subscription:
        sub = Subscription(self, table, callback, str(poll_id) if poll_id is not None else None)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, change: Change) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]
        for sub in targets:
            try:
                sub.callback(change)
            except Exception:
                logger.exception("Live update subscriber failed for %s", change.table)

    def watch(self, model, table: str, poll_id_of: Callable) -> None:
        """Queue a change for every inserted ``model`` row; publish on commit."""
        self._bind_session_events()
        if model in self._watched:
            return
        self._watched.add(model)

        def _after_insert(mapper, connection, target):
            session = object_session(target)
            if session is None:
                return
            session.info.setdefault(PENDING_KEY, []).append(
                Change(table=table, poll_id=str(poll_id_of(target)))
            )

        event.listen(model, "after_insert", _after_insert)

    def _bind_session_events(self) -> None:
        if self._session_bound:
            return
        self._session_bound = True
        event.listen(Session, "after_commit", self._after_commit)
        event.listen(Session, "after_rollback", self._after_rollback)

    def _after_commit(self, session) -> None:
        for change in session.info.pop(PENDING_KEY, []):
            self.publish(change)

    def _after_rollback(self, session) -> None:
        session.info.pop(PENDING_KEY, None)
