from django.http import JsonResponse

from clinic.api import api_view, json_body

from .exceptions import ValidationError
from .services import BookingService, Conflict
from .utils.time_utils import parse_date


def _conflict_or(result, status=200):
    if isinstance(result, Conflict):
        return JsonResponse(result.as_dict(), status=409)
    return JsonResponse(result.as_dict(), status=status)


@api_view("GET", "POST")
def appointments(request):
    service = BookingService()
    if request.method == "POST":
        return _conflict_or(service.book(json_body(request)), status=201)

    return JsonResponse([a.as_dict() for a in service.list_appointments()], safe=False)


@api_view("GET", "PATCH")
def appointment_detail(request, pk):
    service = BookingService()
    if request.method == "PATCH":
        data = json_body(request)
        appt = service.update_status(pk, data.get("status"))
        return JsonResponse(appt.as_dict())

    return JsonResponse(service.get(pk).as_dict())


@api_view("PATCH", "POST")
def appointment_reschedule(request, pk):
    data = json_body(request)
    # portal sends date/time without the new_ prefix
    result = BookingService().reschedule(
        pk,
        data.get("new_date") or data.get("date"),
        data.get("new_time") or data.get("time"),
        data.get("new_provider_name") or data.get("provider_name"),
    )
    return _conflict_or(result)


@api_view("POST")
def check_availability(request):
    result = BookingService().check_availability(json_body(request))
    return JsonResponse(result.as_dict())


@api_view("GET")
def search_appointments(request):
    email = request.GET.get("email", "").strip()
    if not email:
        raise ValidationError("Email query missing", {"email": ["This field is required."]})

    found = BookingService().search_by_email(email)
    if not found:
        return JsonResponse({"error": "No appointments found"}, status=404)
    return JsonResponse([a.as_dict() for a in found], safe=False)


def _window_dict(w):
    return {
        "id": w.id,
        "provider_id": w.provider_id,
        "provider_name": w.provider.name,
        "day_of_week": w.get_day_of_week_display().upper(),
        "start_time": w.start_time.strftime("%H:%M"),
        "end_time": w.end_time.strftime("%H:%M"),
        "max_appointments_per_slot": w.max_appointments_per_slot,
        "is_available": w.is_available,
    }


@api_view("GET", "POST")
def availability(request):
    registry = BookingService().registry
    if request.method == "POST":
        data = json_body(request)
        window_id = registry.add_window(
            data.get("provider_id"),
            data.get("day_of_week"),
            data.get("start_time"),
            data.get("end_time"),
            data.get("max_appointments_per_slot"),
        )
        return JsonResponse(_window_dict(registry.get_window(window_id)), status=201)

    provider_id = request.GET.get("provider_id") or request.GET.get("doctorId") or None
    return JsonResponse([_window_dict(w) for w in registry.list_windows(provider_id)], safe=False)


@api_view("DELETE")
def availability_detail(request, pk):
    BookingService().registry.remove_window(pk)
    return JsonResponse({"success": True})


@api_view("GET")
def availability_slots(request):
    provider = request.GET.get("provider", "").strip()
    day = parse_date(request.GET.get("date"))
    if not provider or day is None:
        raise ValidationError(
            "provider and date (YYYY-MM-DD) are required",
            {"provider": ["This field is required."], "date": ["Enter a valid date."]},
        )
    slots = BookingService().list_slots(provider, day)
    return JsonResponse([s.as_dict() for s in slots], safe=False)


@api_view("GET")
def providers(request):
    return JsonResponse([
        {"id": p.id, "name": p.name, "email": p.email, "is_active": p.is_active}
        for p in BookingService().registry.list_providers()
    ], safe=False)
