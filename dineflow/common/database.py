import functools
import logging
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .db import Base, utcnow
from .errors import StorageError
from ..foods.model import Food
from ..orders.model import Order

_logger = logging.getLogger(__name__)

# Async SQLAlchemy engine and session factory, created by init_db()
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


async def init_db(db_url: str) -> None:
    global engine, AsyncSessionLocal
    engine = create_async_engine(db_url, future=True, echo=False)
    AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


def _session() -> AsyncSession:
    if AsyncSessionLocal is None:
        raise StorageError("Database not initialized")
    return AsyncSessionLocal()


def _guard(fn):
    """Surface driver/ORM failures as StorageError."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as e:
            _logger.error("DB %s failed | err=%s", fn.__name__, e)
            raise StorageError("Database request failed") from e

    return wrapper


# Foods

@_guard
async def fetch_foods() -> List[Dict[str, Any]]:
    async with _session() as session:
        res = await session.execute(sa.select(Food).order_by(Food.seq.desc()))
        return [food.to_dict() for food in res.scalars().all()]


@_guard
async def fetch_food(food_id: str) -> Optional[Dict[str, Any]]:
    async with _session() as session:
        res = await session.execute(sa.select(Food).where(Food.id == food_id))
        food = res.scalar_one_or_none()
        return food.to_dict() if food else None


@_guard
async def insert_food(values: Dict[str, Any]) -> Dict[str, Any]:
    async with _session() as session:
        food = Food(**values)
        session.add(food)
        await session.commit()
        return food.to_dict()


@_guard
async def update_food_row(food_id: str, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    async with _session() as session:
        res = await session.execute(sa.select(Food).where(Food.id == food_id))
        food = res.scalar_one_or_none()
        if food is None:
            return None
        for key, value in values.items():
            setattr(food, key, value)
        food.updated_at = utcnow()
        await session.commit()
        return food.to_dict()


@_guard
async def delete_food_row(food_id: str) -> bool:
    async with _session() as session:
        res = await session.execute(sa.delete(Food).where(Food.id == food_id))
        await session.commit()
        return (res.rowcount or 0) > 0


# Orders

@_guard
async def fetch_orders() -> List[Dict[str, Any]]:
    async with _session() as session:
        res = await session.execute(sa.select(Order).order_by(Order.seq.desc()))
        return [order.to_dict() for order in res.scalars().all()]


@_guard
async def insert_orders(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insert every row in one transaction; either all are stored or none."""
    async with _session() as session:
        async with session.begin():
            orders = [Order(**row) for row in rows]
            session.add_all(orders)
        return [order.to_dict() for order in orders]


@_guard
async def update_order_status(order_id: str, status: str) -> Optional[Dict[str, Any]]:
    async with _session() as session:
        res = await session.execute(sa.select(Order).where(Order.id == order_id))
        order = res.scalar_one_or_none()
        if order is None:
            return None
        order.status = status
        order.updated_at = utcnow()
        await session.commit()
        return order.to_dict()


@_guard
async def delete_order_row(order_id: str) -> bool:
    async with _session() as session:
        res = await session.execute(sa.delete(Order).where(Order.id == order_id))
        await session.commit()
        return (res.rowcount or 0) > 0


@_guard
async def count_foods() -> int:
    async with _session() as session:
        res = await session.execute(sa.select(sa.func.count(Food.seq)))
        return int(res.scalar() or 0)
