from django.http import JsonResponse

from clinic.api import api_view, json_body
from scheduling.exceptions import ValidationError

from .inbox import NotificationInbox


def _flag(value, default=True):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes")


@api_view("GET", "PATCH")
def notifications(request):
    inbox = NotificationInbox()
    if request.method == "PATCH":
        # portal marks one notification read by id in the body
        notification_id = json_body(request).get("notificationId")
        if notification_id in (None, ""):
            raise ValidationError("notificationId missing", {"notificationId": ["This field is required."]})
        inbox.mark_read(notification_id)
        return JsonResponse({"success": True})

    email = request.GET.get("email", "").strip()
    unread_only = _flag(request.GET.get("unreadOnly"), default=False)
    return JsonResponse([n.as_dict() for n in inbox.list_for(email, unread_only)], safe=False)


@api_view("PATCH", "DELETE")
def notification_detail(request, pk):
    inbox = NotificationInbox()
    if request.method == "DELETE":
        inbox.delete(pk)
        return JsonResponse({"success": True})

    inbox.mark_read(pk, _flag(json_body(request).get("isRead")))
    return JsonResponse({"success": True})
