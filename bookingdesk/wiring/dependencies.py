from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from bookingdesk.core.config import settings
from bookingdesk.application.ports.calendar import CalendarPort
from bookingdesk.application.ports.distance import DistancePort
from bookingdesk.application.ports.notifier import NotifierPort
from bookingdesk.application.ports.payment_gateway import PaymentGatewayPort
from bookingdesk.application.ports.table_store import TableStorePort
from bookingdesk.application.use_cases.admin_auth import AdminAuthenticator
from bookingdesk.application.use_cases.availability import AvailabilityUseCase
from bookingdesk.application.use_cases.booking_intake import BookingIntakeUseCase
from bookingdesk.application.use_cases.booking_lifecycle import BookingStateMachine
from bookingdesk.application.use_cases.consultations import ConsultationsUseCase
from bookingdesk.application.use_cases.payment_webhook import PaymentWebhookProcessor
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.use_cases.travel_quote import TravelQuoteUseCase
from bookingdesk.application.utils.rate_limiter import FixedWindowRateLimiter
from bookingdesk.infrastructure.calendar.google_calendar import GoogleCalendar
from bookingdesk.infrastructure.calendar.mock_calendar import MockCalendar
from bookingdesk.infrastructure.maps.distance_matrix import GoogleDistanceMatrix
from bookingdesk.infrastructure.notifications.email_notifier import EmailNotifier
from bookingdesk.infrastructure.notifications.logging_notifier import LoggingNotifier
from bookingdesk.infrastructure.payments.mock_gateway import MockPaymentGateway
from bookingdesk.infrastructure.payments.yoco_gateway import YocoGateway
from bookingdesk.infrastructure.store.booking_repository import BookingRepository
from bookingdesk.infrastructure.store.consultation_repository import ConsultationRepository
from bookingdesk.infrastructure.store.json_store import JsonTableStore
from bookingdesk.infrastructure.store.memory_store import MemoryTableStore


logger = logging.getLogger(__name__)


def _is_dev() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


@lru_cache
def get_table_store() -> TableStorePort:
    if settings.STORE_PROVIDER.lower() == "memory":
        return MemoryTableStore()
    return JsonTableStore(settings.DATA_DIR)


@lru_cache
def get_booking_repository() -> BookingRepository:
    return BookingRepository(get_table_store(), id_prefix=settings.BOOKING_ID_PREFIX)


@lru_cache
def get_consultation_repository() -> ConsultationRepository:
    return ConsultationRepository(get_table_store())


@lru_cache
def get_reference_data() -> ReferenceData:
    return ReferenceData(
        get_table_store(),
        settings_ttl=settings.SETTINGS_TTL_SECONDS,
        catalog_ttl=settings.CATALOG_TTL_SECONDS,
        availability_ttl=settings.AVAILABILITY_TTL_SECONDS,
    )


@lru_cache
def get_calendar() -> CalendarPort:
    has_credentials = all(
        (settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CLIENT_SECRET, settings.GOOGLE_CALENDAR_REFRESH_TOKEN)
    )
    if not has_credentials or _is_dev():
        logger.info("Using MockCalendar")
        return MockCalendar()
    reference = get_reference_data()
    return GoogleCalendar(lambda: reference.business_settings().calendar_id)


@lru_cache
def get_payment_gateway() -> PaymentGatewayPort:
    if settings.PAYMENT_PROVIDER.lower() == "mock":
        logger.info("Using MockPaymentGateway")
        return MockPaymentGateway()
    return YocoGateway(get_reference_data().business_settings)


@lru_cache
def get_notifier() -> NotifierPort:
    if not settings.RESEND_API_KEY:
        logger.info("Using LoggingNotifier (RESEND_API_KEY missing)")
        return LoggingNotifier()
    return EmailNotifier(get_reference_data().business_settings)


@lru_cache
def get_distance() -> DistancePort:
    return GoogleDistanceMatrix()


@lru_cache
def get_state_machine() -> BookingStateMachine:
    return BookingStateMachine(
        get_booking_repository(),
        get_reference_data(),
        calendar=get_calendar(),
        gateway=get_payment_gateway(),
        notifier=get_notifier(),
        timezone=get_timezone(),
    )


@lru_cache
def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(get_reference_data(), get_booking_repository(), get_timezone())


@lru_cache
def get_intake_use_case() -> BookingIntakeUseCase:
    return BookingIntakeUseCase(
        get_booking_repository(),
        get_reference_data(),
        get_availability_use_case(),
        get_payment_gateway(),
        get_timezone(),
        consultations=get_consultation_repository(),
    )


@lru_cache
def get_consultations_use_case() -> ConsultationsUseCase:
    return ConsultationsUseCase(get_consultation_repository(), get_booking_repository())


@lru_cache
def get_travel_quote_use_case() -> TravelQuoteUseCase:
    return TravelQuoteUseCase(get_reference_data(), get_distance())


@lru_cache
def get_webhook_processor() -> PaymentWebhookProcessor:
    if not settings.PAYMENT_WEBHOOK_SECRET and not _is_dev():
        logger.warning("PAYMENT_WEBHOOK_SECRET not set; webhook deliveries will not be verified")
    return PaymentWebhookProcessor(
        get_state_machine(),
        settings.PAYMENT_WEBHOOK_SECRET,
        tolerance_seconds=settings.WEBHOOK_TOLERANCE_SECONDS,
    )


@lru_cache
def get_admin_authenticator() -> AdminAuthenticator:
    reference = get_reference_data()
    return AdminAuthenticator(
        settings.ADMIN_TOKEN_SECRET,
        reference.admin_password,
    )


@lru_cache
def get_booking_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(settings.BOOKING_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS)


@lru_cache
def get_login_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(settings.LOGIN_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS)
