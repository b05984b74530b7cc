from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_flush
from models.orderItem import OrderItem, OrderItemDTO


class OrderItemRepository:
    @staticmethod
    async def create_many(order_item_dtos: list[OrderItemDTO], session: AsyncSession | Session) -> list[OrderItemDTO]:
        order_items = [OrderItem(**dto.model_dump(exclude_none=True)) for dto in order_item_dtos]
        session.add_all(order_items)
        await session_flush(session)
        return [OrderItemDTO.model_validate(item, from_attributes=True) for item in order_items]
