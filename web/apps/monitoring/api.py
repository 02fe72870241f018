from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.orders.config import get_payments_config


def health_view(_request):
    db_ok = False
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except DatabaseError:
        db_ok = False

    gateway = {"ok": False}
    try:
        config = get_payments_config()
        gateway = {
            "ok": True,
            "provider": config.provider.value,
            "live": bool(getattr(settings, "USE_HTTP_ADAPTERS", True)),
        }
    except ImproperlyConfigured:
        pass

    ok = db_ok and gateway["ok"]
    code = 200 if ok else 503
    return JsonResponse(
        {"ok": ok, "components": {"db": {"ok": db_ok}, "gateway": gateway}},
        status=code,
    )
