from pydantic import BaseModel


class PaymentHandleDTO(BaseModel):
    """Opaque handle the provider returned for an in-progress payment."""
    reference: str
    amount_minor_units: int
    currency: str
    client_secret: str | None = None
    payment_url: str | None = None


class PaymentEventDTO(BaseModel):
    """Parsed provider webhook event."""
    id: str | None = None
    type: str | None = None
    reference: str | None = None
