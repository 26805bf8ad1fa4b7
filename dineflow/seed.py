import asyncio
import logging

from .common.config import settings
from .common.database import close_db, count_foods, init_db, insert_food

_logger = logging.getLogger(__name__)

SAMPLE_MENU = [
    {"name": "Paneer Butter Masala", "category": "Main Course", "type": "Veg", "price": 240.0},
    {"name": "Chicken Biryani", "category": "Main Course", "type": "Non-Veg", "price": 280.0},
    {"name": "Dal Tadka", "category": "Main Course", "type": "Veg", "price": 160.0},
    {"name": "Margherita Pizza", "category": "Pizza", "type": "Veg", "price": 200.0},
    {"name": "Chicken Tikka", "category": "Starters", "type": "Non-Veg", "price": 220.0},
    {"name": "Veg Spring Rolls", "category": "Starters", "type": "Veg", "price": 140.0},
    {"name": "Butter Naan", "category": "Breads", "type": "Veg", "price": 40.0},
    {"name": "Gulab Jamun", "category": "Desserts", "type": "Veg", "price": 90.0},
    {"name": "Masala Chai", "category": "Beverages", "type": "Veg", "price": 30.0},
    {"name": "Fresh Lime Soda", "category": "Beverages", "type": "Veg", "price": 60.0},
]


async def seed_menu(db_url: str) -> int:
    """Insert the sample menu into an empty catalog. Returns how many foods were added."""
    await init_db(db_url)
    try:
        if await count_foods() > 0:
            _logger.info("Catalog already populated, skipping seed.")
            return 0
        for item in SAMPLE_MENU:
            await insert_food({**item, "available": True})
        _logger.info("Seed complete. Added %s foods.", len(SAMPLE_MENU))
        return len(SAMPLE_MENU)
    finally:
        await close_db()


async def amain():
    logging.basicConfig(level=logging.INFO)
    await seed_menu(settings.DB_URL)


if __name__ == "__main__":
    asyncio.run(amain())
