"""Health check endpoint for monitoring."""

from django.http import JsonResponse

from core.config import get_settings


def health_check(_request: object) -> JsonResponse:
    """
    Health check endpoint.

    The assistant keeps no database, so health is a matter of whether the
    external services it depends on are configured.

    Args:
        _request: Django HTTP request object (unused but required by Django).

    Returns:
        JsonResponse with health status.
    """
    checks: dict[str, dict[str, str]] = {
        "gemini": _check_configured(get_settings().gemini.is_configured),
        "rye": _check_configured(get_settings().rye.is_configured),
    }

    all_healthy = all(check.get("status") == "healthy" for check in checks.values())

    health_status = {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
    }

    return JsonResponse(
        health_status,
        status=200 if all_healthy else 503,
    )


def _check_configured(configured: bool) -> dict[str, str]:
    """Report whether a service has credentials."""
    if configured:
        return {"status": "healthy"}
    return {"status": "unhealthy", "error": "not configured"}
