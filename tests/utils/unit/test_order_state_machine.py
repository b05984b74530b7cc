import pytest

from enums.order_status import OrderStatus
from utils.order_state_machine import OrderStateMachine


class TestOrderStateMachine:

    @pytest.mark.parametrize("from_status,to_status", [
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PROCESSING),
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_FAILED),
        (OrderStatus.PAYMENT_FAILED, OrderStatus.PENDING_PAYMENT),
    ])
    def test_valid_transitions(self, from_status, to_status):
        assert OrderStateMachine.is_valid_transition(from_status, to_status)

    @pytest.mark.parametrize("from_status,to_status", [
        (OrderStatus.PROCESSING, OrderStatus.PAYMENT_FAILED),
        (OrderStatus.PROCESSING, OrderStatus.PENDING_PAYMENT),
        (OrderStatus.PAYMENT_FAILED, OrderStatus.PROCESSING),
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PENDING_PAYMENT),
        (OrderStatus.PROCESSING, OrderStatus.PROCESSING),
    ])
    def test_invalid_transitions(self, from_status, to_status):
        assert not OrderStateMachine.is_valid_transition(from_status, to_status)

    def test_processing_is_final(self):
        assert not any(from_status == OrderStatus.PROCESSING for from_status, _ in OrderStateMachine.TRANSITIONS)

    def test_validate_and_log(self, caplog):
        with caplog.at_level("INFO", logger="utils.order_state_machine"):
            assert OrderStateMachine.validate_and_log_transition(
                7, OrderStatus.PENDING_PAYMENT, OrderStatus.PROCESSING
            )
            assert not OrderStateMachine.validate_and_log_transition(
                7, OrderStatus.PROCESSING, OrderStatus.PAYMENT_FAILED, user_id=3
            )

        messages = [record.getMessage() for record in caplog.records]
        assert any("Order 7 PENDING_PAYMENT -> PROCESSING by payment provider" in m for m in messages)
        assert any(m.endswith(": payment confirmed by provider") for m in messages)
        assert any("Rejected status transition for order 7" in m for m in messages)
