import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.order_status import OrderStatus
from exceptions.cart import EmptyCartError
from exceptions.order import InsufficientInventoryError, OrderNotFoundError, InvalidOrderStateError
from exceptions.payment import PaymentInitiationError, PaymentProviderError
from exceptions.product import ProductNotFoundError
from models.cartItem import CartItemDTO
from models.order import OrderDTO, OrderDetailsDTO, CheckoutResultDTO
from models.orderItem import OrderItemDTO
from models.payment import PaymentHandleDTO
from models.product import ProductDTO
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.discount_rule import DiscountRuleRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from services.payment import PaymentProvider
from services.pricing import PricingService
from utils.money import to_minor_units
from utils.order_state_machine import OrderStateMachine
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    async def _reserve_inventory(lines: list[tuple[CartItemDTO, ProductDTO]], session: AsyncSession | Session) -> None:
        """
        Check and decrement stock for every tracked product in the cart.

        Rows are read under lock and each decrement is conditional on enough
        stock remaining, so two checkouts can never both take the last unit.
        """
        requested: dict[int, int] = {}
        names: dict[int, str] = {}
        for cart_item, product in lines:
            requested[product.id] = requested.get(product.id, 0) + cart_item.quantity
            names[product.id] = product.name

        available_by_product = await ProductRepository.lock_inventory(sorted(requested), session)

        for product_id in sorted(requested):
            if product_id not in available_by_product:
                raise ProductNotFoundError(product_id)

            available = available_by_product[product_id]
            quantity = requested[product_id]
            if available is None:
                # Untracked stock
                continue
            if available < quantity:
                raise InsufficientInventoryError(product_id, names[product_id], quantity, available)

            if not await ProductRepository.decrement_inventory(product_id, quantity, session):
                current = (await ProductRepository.lock_inventory([product_id], session)).get(product_id) or 0
                raise InsufficientInventoryError(product_id, names[product_id], quantity, current)

            logger.debug(f"[Order] Reserved {quantity}x product {product_id} ({available} -> {available - quantity})")

    @staticmethod
    async def _request_payment(payment_provider: PaymentProvider, order_id: int, amount_minor_units: int,
                               currency: str) -> PaymentHandleDTO:
        try:
            return await payment_provider.create_payment_request(
                amount_minor_units, currency, reference=str(order_id)
            )
        except PaymentProviderError as e:
            raise PaymentInitiationError(e.reason, order_id=order_id) from e
        except Exception as e:
            logger.exception(f"[Order] Unexpected payment provider failure for order {order_id}")
            raise PaymentInitiationError("unexpected provider error", order_id=order_id) from e

    @staticmethod
    async def _release_order(order_id: int, cart_id: int, lines: list[tuple[CartItemDTO, ProductDTO]],
                             session: AsyncSession | Session) -> None:
        """
        Undo a committed reservation whose payment never started.

        Stock goes back, the cart lines come back (merged into anything added
        to the cart in the meantime) and the order with its items is deleted.
        """
        try:
            async with TransactionManager.atomic_transaction(session, write=True):
                for cart_item, product in lines:
                    await ProductRepository.restore_inventory(product.id, cart_item.quantity, session)
                    current = await CartItemRepository.get_by_product(cart_id, product.id, session)
                    if current is None:
                        await CartItemRepository.create(CartItemDTO(
                            cart_id=cart_id, product_id=product.id, quantity=cart_item.quantity
                        ), session)
                    else:
                        await CartItemRepository.update_quantity(
                            current.id, current.quantity + cart_item.quantity, session
                        )
                await OrderRepository.delete(order_id, session)
            logger.info(f"[Order] Released order {order_id}: stock and cart restored")
        except Exception:
            logger.critical(f"[Order] Could not release order {order_id}; "
                            f"stock and cart of cart {cart_id} need manual repair", exc_info=True)

    @staticmethod
    async def create_order(user_id: int,
                           payment_provider: PaymentProvider,
                           session: AsyncSession | Session) -> CheckoutResultDTO:
        """
        Turn the user's cart into an order awaiting payment.

        Flow:
        1. Snapshot cart lines, pricing tier and active discount rules
        2. Price lines and the cart total exactly as the cart view does
        3. Check and decrement inventory
        4. Insert the order as PENDING_PAYMENT
        5. Insert one order item per line with its frozen unit price
        6. Empty the cart, then commit steps 3-6 as one write transaction
        7. Request a payment from the provider for the total in minor units,
           with no transaction open
        8. Store the provider's payment reference on the order

        If step 7 or 8 fails the reservation is released: stock and cart lines
        are restored and the order is deleted, so no failed checkout keeps stock.

        Raises:
            EmptyCartError: Cart missing or without items
            PaymentInitiationError: Non-positive total or provider failure
            InsufficientInventoryError: A line asks for more than is in stock
        """
        async with TransactionManager.atomic_transaction(session, write=True):
            # 1. Snapshot
            cart = await CartRepository.get_by_user_id(user_id, session)
            lines = await CartItemRepository.get_with_products(cart.id, session) if cart else []
            if not lines:
                raise EmptyCartError(user_id)

            pricing_tier_id = await UserRepository.get_pricing_tier_id(user_id, session)
            rules = await DiscountRuleRepository.get_active_for_tier(pricing_tier_id, session)

            # 2. Pricing
            priced = PricingService.calculate_cart(
                [(cart_item.id, product, cart_item.quantity) for cart_item, product in lines],
                pricing_tier_id,
                rules,
            )
            amount_minor_units = to_minor_units(priced.total_amount)
            if amount_minor_units <= 0:
                raise PaymentInitiationError("order total must be positive")

            # 3. Inventory
            await OrderService._reserve_inventory(lines, session)

            # 4. Order header
            order = await OrderRepository.create(OrderDTO(
                user_id=user_id,
                status=OrderStatus.PENDING_PAYMENT,
                total_amount=priced.total_amount,
                currency=config.CURRENCY,
            ), session)

            # 5. Order items with frozen prices
            await OrderItemRepository.create_many([
                OrderItemDTO(
                    order_id=order.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.discounted_unit_price,
                )
                for line in priced.items
            ], session)

            # 6. Cart
            await CartItemRepository.remove_all(cart.id, session)

        try:
            # 7. Payment request
            handle = await OrderService._request_payment(
                payment_provider, order.id, amount_minor_units, config.CURRENCY
            )

            # 8. Provider reference
            async with TransactionManager.atomic_transaction(session, write=True):
                await OrderRepository.set_payment_reference(order.id, handle.reference, session)
        except BaseException:
            logger.warning(f"[Order] Payment for order {order.id} could not be started, releasing reservation")
            await OrderService._release_order(order.id, cart.id, lines, session)
            raise

        logger.info(f"[Order] Order {order.id} created for user {user_id}: total {priced.total_amount} "
                    f"{config.CURRENCY}, {len(priced.items)} line(s), payment {handle.reference}")
        return CheckoutResultDTO(order_id=order.id, total_amount=priced.total_amount, payment_handle=handle)

    @staticmethod
    async def list_orders(user_id: int, session: AsyncSession | Session) -> list[OrderDetailsDTO]:
        return await OrderRepository.get_all_for_user(user_id, session)

    @staticmethod
    async def get_order(user_id: int, order_id: int, session: AsyncSession | Session) -> OrderDetailsDTO:
        order = await OrderRepository.get_details_for_user(order_id, user_id, session)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    async def retry_payment(user_id: int,
                            order_id: int,
                            payment_provider: PaymentProvider,
                            session: AsyncSession | Session) -> PaymentHandleDTO:
        """
        Start a new payment for a PAYMENT_FAILED order.

        The order returns to PENDING_PAYMENT with the new provider reference.
        Stock reserved at checkout stays with the order. A provider failure
        leaves the order in PAYMENT_FAILED.
        """
        async with TransactionManager.atomic_transaction(session):
            order = await OrderRepository.get_details_for_user(order_id, user_id, session)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.status != OrderStatus.PAYMENT_FAILED:
                raise InvalidOrderStateError(order_id, order.status.value, OrderStatus.PAYMENT_FAILED.value)

        amount_minor_units = to_minor_units(order.total_amount)
        if amount_minor_units <= 0:
            raise PaymentInitiationError("order total must be positive", order_id=order_id)

        handle = await OrderService._request_payment(
            payment_provider, order.id, amount_minor_units, order.currency
        )

        async with TransactionManager.atomic_transaction(session, write=True):
            OrderStateMachine.validate_and_log_transition(
                order.id, OrderStatus.PAYMENT_FAILED, OrderStatus.PENDING_PAYMENT, user_id=user_id
            )
            if not await OrderRepository.update_status(order.id, OrderStatus.PAYMENT_FAILED,
                                                       OrderStatus.PENDING_PAYMENT, session):
                logger.warning(f"[Order] Order {order_id} changed during payment retry, "
                               f"payment {handle.reference} is unused")
                current = await OrderRepository.get_by_id(order_id, session)
                current_state = current.status.value if current else "deleted"
                raise InvalidOrderStateError(order_id, current_state, OrderStatus.PAYMENT_FAILED.value)
            await OrderRepository.set_payment_reference(order.id, handle.reference, session)

        return handle

    @staticmethod
    @TransactionManager.with_retry(max_retries=3)
    async def reconcile_payment(payment_reference: str,
                                new_status: OrderStatus,
                                session: AsyncSession | Session) -> bool:
        """
        Move the order paid through ``payment_reference`` out of PENDING_PAYMENT.

        Returns True if the order changed. Unknown references and orders that
        already left PENDING_PAYMENT (redelivered events) are no-ops.
        """
        async with TransactionManager.atomic_transaction(session, write=True):
            order = await OrderRepository.get_by_payment_reference(payment_reference, session)
            if order is None:
                logger.warning(f"[Order] No order for payment reference {payment_reference}, ignoring event")
                return False

            if order.status != OrderStatus.PENDING_PAYMENT:
                logger.info(f"[Order] Order {order.id} already {order.status.value}, "
                            f"ignoring {new_status.value} for payment {payment_reference}")
                return False

            if not OrderStateMachine.validate_and_log_transition(order.id, order.status, new_status):
                return False

            if not await OrderRepository.update_status(order.id, OrderStatus.PENDING_PAYMENT, new_status, session):
                logger.info(f"[Order] Order {order.id} changed concurrently, ignoring {new_status.value}")
                return False

            return True
