import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from django.conf import settings
from django.db import close_old_connections, transaction

from .channels import get_channel
from .models import Notification

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    recipient_email: str
    recipient_phone: str
    title: str
    message: str
    category: str = Notification.CATEGORY_INFO
    appointment_id: Optional[int] = None
    details: dict = field(default_factory=dict)


class NotificationDispatcher:
    """
    Stores the in-app notification, then hands email delivery to a bounded
    queue drained by a daemon worker so a slow mail provider never holds
    up the caller. With NOTIFICATIONS_ASYNC off, email goes out inline.

    Email is only scheduled once the transaction that stored the row
    commits. A failed delivery is logged and reported to ``on_failure``.
    """

    def __init__(self, channel=None, run_async=None, queue_size=None):
        self.channel = channel
        self.run_async = run_async
        self._queue = queue.Queue(maxsize=queue_size or settings.NOTIFICATIONS_QUEUE_SIZE)
        self._worker = None
        self._worker_lock = threading.Lock()

    def send(self, message: NotificationMessage, on_failure: Optional[Callable] = None) -> Notification:
        """
        Record the notification and schedule its email.
        Database errors propagate; email problems go to on_failure(exc).
        """
        notification = Notification.objects.create(
            recipient_email=message.recipient_email or "",
            recipient_phone=message.recipient_phone or "",
            appointment_id=message.appointment_id,
            title=message.title,
            message=message.message,
            category=message.category,
        )

        if not message.recipient_email:
            logger.info("Notification %s has no email recipient; in-app only", notification.pk)
            return notification

        transaction.on_commit(lambda: self._schedule(message, on_failure))
        return notification

    def deliver(self, message: NotificationMessage):
        """Send one email right now. Channel errors propagate."""
        channel = self.channel or get_channel()
        channel.deliver(message)
        logger.info("Email '%s' sent to %s via %s", message.title, message.recipient_email, channel.name)

    def flush(self):
        """Block until every queued email has been attempted."""
        self._queue.join()

    def _schedule(self, message, on_failure):
        run_async = self.run_async if self.run_async is not None else settings.NOTIFICATIONS_ASYNC
        if not run_async:
            self._deliver(message, on_failure)
            return

        self._ensure_worker()
        try:
            self._queue.put_nowait((message, on_failure))
        except queue.Full:
            logger.warning(
                "Notification queue full; email '%s' to %s dropped",
                message.title, message.recipient_email,
            )
            self._report(on_failure, queue.Full("notification queue full"))

    def _deliver(self, message, on_failure):
        try:
            self.deliver(message)
        except Exception as exc:
            logger.exception("Email '%s' to %s failed", message.title, message.recipient_email)
            self._report(on_failure, exc)

    def _report(self, on_failure, exc):
        if on_failure is None:
            return
        try:
            on_failure(exc)
        except Exception:
            logger.exception("Failure callback for notification email raised")

    def _ensure_worker(self):
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run,
                    name="notification-dispatcher",
                    daemon=True,
                )
                self._worker.start()

    def _run(self):
        while True:
            message, on_failure = self._queue.get()
            try:
                self._deliver(message, on_failure)
            finally:
                # the failure callback may have opened a connection on this thread
                close_old_connections()
                self._queue.task_done()


_dispatcher = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = NotificationDispatcher()
        return _dispatcher
