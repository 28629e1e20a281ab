import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.core.config import settings
from app.core.rate_limit import get_access_controller

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    controller = get_access_controller()
    stop_event = asyncio.Event()
    interval = max(1, settings.rate_limit_sweep_interval_s)

    async def periodic_sweep() -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                removed = await asyncio.to_thread(controller.sweep)
                if removed:
                    logger.info("rate_limit_periodic_sweep removed=%s", removed)
            except Exception as exc:  # pragma: no cover
                logger.warning("rate_limit_periodic_sweep_failed: %s", type(exc).__name__)

    sweep_task = asyncio.create_task(periodic_sweep())
    yield
    stop_event.set()
    if not sweep_task.done():
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
