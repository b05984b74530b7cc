from enum import Enum


class OrderStatus(Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"   # Waiting for provider confirmation
    PROCESSING = "PROCESSING"             # Payment confirmed
    PAYMENT_FAILED = "PAYMENT_FAILED"     # Declined or failed, may be retried
