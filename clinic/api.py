import json
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from scheduling.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from scheduling.forms import normalize_keys


def json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except ValueError:
        raise ValidationError("Request body is not valid JSON.")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return normalize_keys(data)


def api_view(*methods):
    """JSON endpoint: restricts methods and maps engine errors to status codes."""

    def decorator(view):
        @csrf_exempt
        @require_http_methods(list(methods))
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except ValidationError as e:
                return JsonResponse({"error": e.message, "errors": e.errors}, status=400)
            except (NotFoundError, ObjectDoesNotExist) as e:
                return JsonResponse({"error": str(e)}, status=404)
            except InvalidTransitionError as e:
                return JsonResponse({"error": str(e)}, status=409)

        return wrapper

    return decorator
