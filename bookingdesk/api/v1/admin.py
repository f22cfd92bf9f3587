import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from bookingdesk.api.v1.guards import limit_login, require_admin
from bookingdesk.api.v1.schemas import (
    ActionResponseSchema,
    AdminBookingSchema,
    ConsultationSchema,
    LoginRequestSchema,
    LoginResponseSchema,
    RefundRequestSchema,
    RescheduleRequestSchema,
    StatusUpdateRequestSchema,
)
from bookingdesk.application.exceptions import (
    AuthenticationError,
    BookingNotFoundError,
    BookingValidationError,
    InvalidTransitionError,
    PaymentGatewayError,
    SlotUnavailableError,
    StoreUnavailableError,
)
from bookingdesk.application.use_cases.admin_auth import AdminAuthenticator
from bookingdesk.application.use_cases.booking_lifecycle import BookingStateMachine, TransitionResult
from bookingdesk.application.use_cases.consultations import ConsultationsUseCase
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.domain.entities.booking import Booking
from bookingdesk.domain.entities.consultation import Consultation
from bookingdesk.infrastructure.store.booking_repository import BookingRepository
from bookingdesk.wiring.dependencies import (
    get_admin_authenticator,
    get_booking_repository,
    get_consultations_use_case,
    get_reference_data,
    get_state_machine,
)

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)


def _action_response(result: TransitionResult, background_tasks: BackgroundTasks) -> ActionResponseSchema:
    if result.effects:
        background_tasks.add_task(result.effects.run)
    booking = result.booking
    return ActionResponseSchema(
        bookingId=booking.booking_id,
        status=booking.deposit_status.value,
        balanceStatus=booking.balance_status.value,
        changed=result.changed,
        paymentUrl=result.payment_url,
        note=result.note,
    )


def _upstream_failure(booking_id: str, action: str, e: Exception) -> HTTPException:
    logger.exception(
        "Admin action failed",
        extra={"booking_id": booking_id, "route": action, "error": str(e)},
    )
    return HTTPException(status_code=500, detail=str(e) or "Internal error")


@router.post("/login", response_model=LoginResponseSchema, dependencies=[Depends(limit_login)])
def login(
    req: LoginRequestSchema,
    auth: AdminAuthenticator = Depends(get_admin_authenticator),
):
    try:
        token = auth.login(req.password)
    except AuthenticationError:
        raise HTTPException(status_code=401, detail="Invalid password")
    except StoreUnavailableError as e:
        logger.exception("Admin login failed", extra={"error": str(e)})
        raise HTTPException(status_code=500, detail="Login failed")
    return LoginResponseSchema(token=token)


@router.get("/bookings", response_model=list[AdminBookingSchema], dependencies=[Depends(require_admin)])
def list_bookings(repository: BookingRepository = Depends(get_booking_repository)):
    try:
        bookings = repository.list_all()
    except StoreUnavailableError as e:
        logger.exception("Booking list failed", extra={"error": str(e)})
        raise HTTPException(status_code=500, detail=str(e))
    return [
        AdminBookingSchema(
            bookingId=b.booking_id,
            name=b.customer_name,
            email=b.customer_email,
            phone=b.customer_phone,
            address=b.customer_address,
            services=b.services_label,
            date=b.date.isoformat(),
            time=b.time_slot,
            total=float(b.amounts.total),
            deposit=float(b.amounts.deposit),
            balanceDue=float(b.amounts.balance),
            status=b.deposit_status.value,
            balanceStatus=b.balance_status.value,
            checkoutId=b.checkout_id,
            calEventId=b.calendar_event_id,
            createdAt=b.created_at.isoformat() if b.created_at else "",
            paymentLink=b.payment_link,
        )
        for b in reversed(bookings)
    ]


@router.get("/consultations", response_model=list[ConsultationSchema], dependencies=[Depends(require_admin)])
def list_consultations(uc: ConsultationsUseCase = Depends(get_consultations_use_case)):
    try:
        entries = uc.list_with_bookings()
    except StoreUnavailableError as e:
        logger.exception("Consultation list failed", extra={"error": str(e)})
        raise HTTPException(status_code=500, detail=str(e))
    return [_consultation_schema(entry.consultation, entry.booking) for entry in entries]


def _consultation_schema(c: Consultation, b: Booking | None) -> ConsultationSchema:
    schema = ConsultationSchema(
        bookingId=c.booking_id,
        clientType=c.client_type,
        leadSource=c.lead_source,
        skinConditions=c.skin_conditions,
        medications=c.medications,
        allergies=c.allergies,
        healthConditions=c.health_conditions,
        pregnancy=c.pregnancy,
        environmental=c.environmental,
        physical=c.physical,
        hairLengthOk=c.hair_length_ok,
        additionalNotes=c.additional_notes,
    )
    if b is None:
        return schema
    return schema.model_copy(
        update={
            "name": b.customer_name,
            "email": b.customer_email,
            "phone": b.customer_phone,
            "date": b.date.isoformat(),
            "time": b.time_slot,
            "services": b.services_label,
            "status": b.deposit_status.value,
        }
    )


@router.post(
    "/bookings/{booking_id}/status",
    response_model=ActionResponseSchema,
    dependencies=[Depends(require_admin)],
)
def update_status(
    booking_id: str,
    req: StatusUpdateRequestSchema,
    background_tasks: BackgroundTasks,
    machine: BookingStateMachine = Depends(get_state_machine),
):
    try:
        result = machine.set_status(booking_id, req.status)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StoreUnavailableError, PaymentGatewayError) as e:
        raise _upstream_failure(booking_id, "status", e)
    return _action_response(result, background_tasks)


@router.post(
    "/bookings/{booking_id}/reschedule",
    response_model=ActionResponseSchema,
    dependencies=[Depends(require_admin)],
)
def reschedule(
    booking_id: str,
    req: RescheduleRequestSchema,
    background_tasks: BackgroundTasks,
    machine: BookingStateMachine = Depends(get_state_machine),
):
    try:
        result = machine.reschedule(booking_id, req.date, req.time)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except (InvalidTransitionError, SlotUnavailableError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError as e:
        raise _upstream_failure(booking_id, "reschedule", e)
    return _action_response(result, background_tasks)


@router.post(
    "/bookings/{booking_id}/request-balance",
    response_model=ActionResponseSchema,
    dependencies=[Depends(require_admin)],
)
def request_balance(
    booking_id: str,
    background_tasks: BackgroundTasks,
    machine: BookingStateMachine = Depends(get_state_machine),
):
    try:
        result = machine.request_balance(booking_id)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (StoreUnavailableError, PaymentGatewayError) as e:
        raise _upstream_failure(booking_id, "request_balance", e)
    return _action_response(result, background_tasks)


@router.post(
    "/bookings/{booking_id}/refund",
    response_model=ActionResponseSchema,
    dependencies=[Depends(require_admin)],
)
def refund(
    booking_id: str,
    req: RefundRequestSchema,
    background_tasks: BackgroundTasks,
    machine: BookingStateMachine = Depends(get_state_machine),
):
    try:
        result = machine.refund(booking_id, req.reason)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StoreUnavailableError, PaymentGatewayError) as e:
        raise _upstream_failure(booking_id, "refund", e)
    return _action_response(result, background_tasks)


@router.post("/cache/invalidate", dependencies=[Depends(require_admin)])
def invalidate_cache(reference: ReferenceData = Depends(get_reference_data)) -> dict[str, bool]:
    reference.invalidate()
    return {"success": True}
