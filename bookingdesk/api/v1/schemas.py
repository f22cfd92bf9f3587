from pydantic import BaseModel

from bookingdesk.domain.entities.booking import DepositStatus


class ServiceSchema(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float
    duration: int
    category: str = ""


class QuoteResponseSchema(BaseModel):
    fee: float
    oneWayKm: float | None = None
    roundTripKm: float | None = None
    duration: str | None = None
    error: str | None = None


class ConfigResponseSchema(BaseModel):
    deposit_percent: str
    google_maps_api_key: str
    app_base_url: str


class BookingResponseSchema(BaseModel):
    success: bool = True
    bookingId: str
    paymentUrl: str | None = None
    paymentError: str | None = None
    depositAmount: float
    balanceDue: float


class BookingStatusSchema(BaseModel):
    bookingId: str
    depositStatus: str
    balanceStatus: str
    name: str
    services: str
    date: str
    time: str
    total: float
    deposit: float
    balance: float
    appBase: str = ""


class LoginRequestSchema(BaseModel):
    password: str = ""


class LoginResponseSchema(BaseModel):
    token: str


class AdminBookingSchema(BaseModel):
    bookingId: str
    name: str
    email: str
    phone: str
    address: str
    services: str
    date: str
    time: str
    total: float
    deposit: float
    balanceDue: float
    status: str
    balanceStatus: str
    checkoutId: str = ""
    calEventId: str = ""
    createdAt: str = ""
    paymentLink: str = ""


class StatusUpdateRequestSchema(BaseModel):
    status: DepositStatus


class RescheduleRequestSchema(BaseModel):
    date: str
    time: str


class RefundRequestSchema(BaseModel):
    reason: str | None = None


class ActionResponseSchema(BaseModel):
    success: bool = True
    bookingId: str
    status: str
    balanceStatus: str
    changed: bool
    paymentUrl: str | None = None
    note: str | None = None


class ConsultationSchema(BaseModel):
    bookingId: str
    clientType: str
    leadSource: str = ""
    skinConditions: str = ""
    medications: str = ""
    allergies: str = ""
    healthConditions: str = ""
    pregnancy: str = ""
    environmental: str = ""
    physical: str = ""
    hairLengthOk: str = ""
    additionalNotes: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    date: str = ""
    time: str = ""
    services: str = ""
    status: str = ""
