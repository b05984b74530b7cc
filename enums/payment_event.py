from enum import Enum


class PaymentEventKind(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @staticmethod
    def from_event_type(event_type: str | None) -> "PaymentEventKind":
        if event_type in ("payment.succeeded", "payment.captured"):
            return PaymentEventKind.SUCCEEDED
        if event_type in ("payment.failed", "payment.declined"):
            return PaymentEventKind.FAILED
        return PaymentEventKind.UNKNOWN
