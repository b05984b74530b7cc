from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, selectinload

from db import session_execute, session_flush, session_refresh
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO, OrderDetailsDTO
from models.orderItem import OrderItem


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession | Session) -> OrderDTO:
        order = Order(**order_dto.model_dump(exclude_none=True))
        session.add(order)
        await session_flush(session)
        await session_refresh(order, session)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_details_for_user(order_id: int, user_id: int, session: AsyncSession | Session) -> OrderDetailsDTO | None:
        stmt = (select(Order)
                .options(selectinload(Order.items))
                .where(Order.id == order_id, Order.user_id == user_id))
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is None:
            return None
        return OrderDetailsDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_all_for_user(user_id: int, session: AsyncSession | Session) -> list[OrderDetailsDTO]:
        stmt = (select(Order)
                .options(selectinload(Order.items))
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id.desc()))
        orders = await session_execute(stmt, session)
        return [OrderDetailsDTO.model_validate(o, from_attributes=True) for o in orders.scalars().all()]

    @staticmethod
    async def get_by_payment_reference(reference: str, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = (select(Order)
                .where(Order.payment_reference == reference)
                .with_for_update()
                .execution_options(populate_existing=True))
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def set_payment_reference(order_id: int, reference: str, session: AsyncSession | Session) -> None:
        stmt = update(Order).where(Order.id == order_id).values(payment_reference=reference)
        await session_execute(stmt, session)

    @staticmethod
    async def update_status(order_id: int, expected: OrderStatus, new_status: OrderStatus,
                            session: AsyncSession | Session) -> bool:
        """
        Compare-and-set on status. False means another writer moved the order first.
        """
        stmt = (update(Order)
                .where(Order.id == order_id, Order.status == expected)
                .values(status=new_status)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def delete(order_id: int, session: AsyncSession | Session) -> None:
        await session_execute(delete(OrderItem).where(OrderItem.order_id == order_id), session)
        await session_execute(delete(Order).where(Order.id == order_id), session)
