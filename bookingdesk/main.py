import logging

from fastapi import FastAPI

from bookingdesk.api.v1.admin import router as admin_router
from bookingdesk.api.v1.public import router as public_router
from bookingdesk.api.webhooks import router as webhooks_router
from bookingdesk.core.config import settings

CONTEXT_KEYS = (
    "booking_id",
    "event_type",
    "status",
    "kind",
    "route",
    "client",
    "effect",
    "event_id",
    "date",
    "time",
    "error",
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Booking Desk", version="1.0.0")

app.include_router(public_router, tags=["public"])
app.include_router(webhooks_router, tags=["webhooks"])
app.include_router(admin_router, tags=["admin"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
