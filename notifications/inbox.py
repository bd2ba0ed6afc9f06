import logging

from .models import Notification

logger = logging.getLogger(__name__)

RECIPIENT_LIMIT = 50
ALL_LIMIT = 100


def _as_pk(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise Notification.DoesNotExist(f"Notification {value!r} does not exist") from None


class NotificationInbox:
    """Read side of the in-app notifications: listing, read flags, removal."""

    def list_for(self, email=None, unread_only=False):
        """
        Newest first. For a recipient, unread_only returns every unread row,
        otherwise the latest RECIPIENT_LIMIT. Without a recipient, the latest
        ALL_LIMIT across everyone.
        """
        qs = Notification.objects.order_by("-created_at", "-id")
        if not email:
            return list(qs[:ALL_LIMIT])

        qs = qs.filter(recipient_email__iexact=email.strip())
        if unread_only:
            return list(qs.filter(is_read=False))
        return list(qs[:RECIPIENT_LIMIT])

    def mark_read(self, notification_id, is_read=True):
        updated = Notification.objects.filter(pk=_as_pk(notification_id)).update(is_read=is_read)
        if not updated:
            raise Notification.DoesNotExist(f"Notification {notification_id} does not exist")

    def delete(self, notification_id):
        try:
            pk = _as_pk(notification_id)
        except Notification.DoesNotExist:
            return
        deleted, _ = Notification.objects.filter(pk=pk).delete()
        if deleted:
            logger.info("Deleted notification %s", notification_id)
