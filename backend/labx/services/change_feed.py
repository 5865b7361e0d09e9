"""Change subscriptions over watched tables.

A subscriber registers a callback for a collection (table name), optionally
narrowed by a predicate over the changed document, and gets back a
``Subscription`` whose ``cancel()`` stops delivery.

Changes are captured from the ORM flush and delivered only after the session
commits; a rollback discards them.
"""
import logging
import uuid
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Optional

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from labx.models.chat_message import ChatMessage
from labx.models.consultation import Consultation
from labx.models.lab_booking import LabBooking

logger = logging.getLogger(__name__)

_PENDING_KEY = "labx_pending_changes"


@dataclass(frozen=True)
class Change:
    collection: str
    kind: str  # added, modified, removed
    document: dict[str, Any]


Callback = Callable[[Change], None]
Predicate = Callable[[dict[str, Any]], bool]


@dataclass
class Subscription:
    collection: str
    callback: Callback
    predicate: Optional[Predicate] = None
    subscription_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    _feed: Optional["ChangeFeed"] = field(default=None, repr=False)

    def cancel(self) -> None:
        if self._feed is not None:
            self._feed._remove(self)
            self._feed = None

    @property
    def active(self) -> bool:
        return self._feed is not None


def _snapshot(obj: Any) -> dict[str, Any]:
    """Loaded column values only; never triggers a lazy load mid-flush."""
    state = inspect(obj)
    return {attr.key: state.dict[attr.key] for attr in state.mapper.column_attrs if attr.key in state.dict}


class ChangeFeed:
    def __init__(self):
        self._lock = Lock()
        self._subscriptions: list[Subscription] = []
        self._watched: dict[type, str] = {}

    def watch(self, model: type) -> None:
        """Emit changes for ``model`` under its table name."""
        self._watched[model] = model.__tablename__

    def subscribe(self, collection: str, callback: Callback, predicate: Optional[Predicate] = None) -> Subscription:
        sub = Subscription(collection=collection, callback=callback, predicate=predicate, _feed=self)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("Subscription %s registered on %s", sub.subscription_id, collection)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
        logger.debug("Subscription %s cancelled", sub.subscription_id)

    def publish(self, change: Change) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.collection == change.collection]
        for sub in targets:
            if sub.predicate is not None and not sub.predicate(change.document):
                continue
            try:
                sub.callback(change)
            except Exception:
                logger.exception("Subscriber %s failed on %s change", sub.subscription_id, change.collection)

    # ── Session hooks ────────────────────────────────────────────────
    def _collect(self, session: Session, flush_context) -> None:
        pending = session.info.setdefault(_PENDING_KEY, [])
        for kind, objects in (("added", session.new), ("modified", session.dirty), ("removed", session.deleted)):
            for obj in objects:
                collection = self._watched.get(type(obj))
                if collection is None:
                    continue
                if kind == "modified" and not session.is_modified(obj):
                    continue
                pending.append(Change(collection, kind, _snapshot(obj)))

    def _dispatch(self, session: Session) -> None:
        for change in session.info.pop(_PENDING_KEY, []):
            self.publish(change)

    def _discard(self, session: Session, *args) -> None:
        session.info.pop(_PENDING_KEY, None)

    def install(self, session_cls=Session) -> None:
        event.listen(session_cls, "after_flush", self._collect)
        event.listen(session_cls, "after_commit", self._dispatch)
        event.listen(session_cls, "after_soft_rollback", self._discard)


change_feed = ChangeFeed()
for _model in (Consultation, ChatMessage, LabBooking):
    change_feed.watch(_model)
change_feed.install()
