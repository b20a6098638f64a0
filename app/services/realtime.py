"""In-process fan-out of task change events.

Routes publish from worker threads; every WebSocket subscriber owns an
``asyncio.Queue`` on its own event loop, so delivery goes through
``call_soon_threadsafe``.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from uuid import uuid4

from ..models.task import Task
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"


@dataclass(eq=False)
class Subscription:
    user_id: str
    family_id: str | None
    is_parent: bool
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    id: str = field(default_factory=lambda: uuid4().hex)

    def wants(self, event: dict) -> bool:
        if event["family_id"] != self.family_id:
            return False
        return self.is_parent or event["assigned_to_id"] == self.user_id


class TaskEventBroker:
    def __init__(self) -> None:
        self._subs: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self, user: User) -> Subscription:
        sub = Subscription(
            user_id=user.id,
            family_id=user.family_id,
            is_parent=user.role == UserRole.PARENT,
            loop=asyncio.get_running_loop(),
        )
        with self._lock:
            self._subs[sub.id] = sub
        logger.debug(f"Subscribed {user.id} to task changes ({sub.id})")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subs.pop(sub.id, None)
        logger.debug(f"Unsubscribed {sub.user_id} ({sub.id})")

    def member_moved(self, user: User) -> None:
        """Point open subscriptions of ``user`` at the family they belong to now."""
        with self._lock:
            for sub in self._subs.values():
                if sub.user_id == user.id:
                    sub.family_id = user.family_id
                    sub.is_parent = user.role == UserRole.PARENT
        logger.debug(f"Subscriptions of {user.id} now follow family {user.family_id}")

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event_type: str, task: Task) -> dict:
        event = {
            "event": event_type,
            "task_id": task.id,
            "status": task.status.value,
            "family_id": task.family_id,
            "assigned_to_id": task.assigned_to_id,
        }
        with self._lock:
            targets = [s for s in self._subs.values() if s.wants(event)]
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub.queue.put_nowait, event)
            except RuntimeError:
                # loop already closed; the socket handler will clean up
                logger.warning(f"Dropping event for closed subscription {sub.id}")
        return event


broker = TaskEventBroker()
