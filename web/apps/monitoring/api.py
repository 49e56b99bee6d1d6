from datetime import datetime, timezone

from django.http import JsonResponse


def health_view(_request):
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return JsonResponse(
        {"success": True, "message": "API is healthy", "timestamp": timestamp},
        status=200,
    )


def index_view(_request):
    return JsonResponse({"message": "Welcome to the eSIM order gateway"}, status=200)
