import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError

from .database import engine
from .init_db import init_db
from .redis_client import redis_client
from .routers import admin, bookings, slots
from .services.reminder_checker import reminder_checker_loop

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.to_thread(init_db, engine)

    reminder_task = asyncio.create_task(reminder_checker_loop())
    logger.info("Backend started")
    try:
        yield
    finally:
        reminder_task.cancel()
        try:
            await reminder_task
        except asyncio.CancelledError:
            pass
        logger.info("Backend stopped")


app = FastAPI(title="Booking API", lifespan=lifespan)

app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(admin.router)


@app.get("/health")
def health():
    try:
        return {"redis": bool(redis_client.ping())}
    except RedisError as e:
        logger.warning(f"Health check: redis unavailable: {e}")
        return {"redis": False}
