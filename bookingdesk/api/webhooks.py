from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from bookingdesk.application.exceptions import (
    BookingValidationError,
    WebhookProcessingError,
    WebhookSignatureError,
)
from bookingdesk.application.use_cases.payment_webhook import PaymentWebhookProcessor
from bookingdesk.wiring.dependencies import get_webhook_processor


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhooks/payment")
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    processor: PaymentWebhookProcessor = Depends(get_webhook_processor),
) -> JSONResponse:
    # Signatures cover the exact bytes received, so read the raw body.
    body = await request.body()
    try:
        outcome = await run_in_threadpool(processor.process, body, dict(request.headers))
    except WebhookSignatureError:
        return JSONResponse({"error": "Invalid signature"}, status_code=401)
    except BookingValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except WebhookProcessingError:
        # 5xx makes the gateway retry the delivery.
        return JSONResponse({"error": "Internal error - will retry"}, status_code=500)
    except Exception as e:
        logger.exception("Fatal error in webhook handler", extra={"error": str(e)})
        return JSONResponse({"error": "Internal error - will retry"}, status_code=500)

    if outcome.effects:
        background_tasks.add_task(outcome.effects.run)
    return JSONResponse({"received": True}, status_code=200)
