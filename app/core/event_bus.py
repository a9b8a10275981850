import asyncio
import logging
from collections import Counter, defaultdict
from typing import Callable, Optional

from app.config.settings import get_settings
from app.models.message import Msg

logger = logging.getLogger(__name__)

SUCCESS = "Success"
FAILURE = "Failure"


class EventBus:
    """Delivers routed messages to the handlers subscribed to their relation.

    Routing never waits for handlers: events are queued and consumed by
    worker tasks started in :meth:`start`.
    """

    def __init__(self):
        self.subscribers: dict[str, list[Callable]] = defaultdict(list)
        self.settings = get_settings()
        self.queue: Optional[asyncio.Queue] = None
        self.workers: list[asyncio.Task] = []
        self.running = False
        self.delivered: Counter = Counter()

    async def start(self):
        self.queue = asyncio.Queue(maxsize=self.settings.event_bus_queue_max_size)
        self.running = True

        for i in range(self.settings.event_bus_worker_count):
            self.workers.append(asyncio.create_task(self._worker(i)))

        logger.info(
            f"Event bus started with {self.settings.event_bus_worker_count} workers"
        )

    async def stop(self):
        self.running = False

        for worker in self.workers:
            worker.cancel()

        await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers.clear()
        self.queue = None

        logger.info("Event bus stopped")

    def subscribe(self, relation: str, handler: Callable):
        if handler not in self.subscribers[relation]:
            self.subscribers[relation].append(handler)

    async def route(self, relation: str, msg: Msg, error: Optional[BaseException] = None):
        if not self.running:
            logger.debug(f"Event bus not running, message {msg.id} not routed to {relation}")
            return

        event = {
            "relation": relation,
            "msg": msg,
            "error": error,
        }

        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.error(f"Event queue full, dropping message {msg.id} for {relation}")

    async def _worker(self, worker_id: int):
        logger.info(f"Event bus worker {worker_id} started")

        while self.running:
            try:
                event = await asyncio.wait_for(self.queue.get(), timeout=1.0)
                await self._deliver(event)
                self.queue.task_done()
            except asyncio.TimeoutError:
                continue
            except Exception as e:
                logger.error(f"Worker {worker_id} error: {e}")

        logger.info(f"Event bus worker {worker_id} stopped")

    async def _deliver(self, event: dict):
        relation = event["relation"]
        self.delivered[relation] += 1

        for handler in self.subscribers.get(relation, []):
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"Error in {relation} handler: {e}", exc_info=True)

    def get_queue_size(self) -> int:
        return self.queue.qsize() if self.queue else 0


_event_bus = EventBus()


def get_event_bus() -> EventBus:
    return _event_bus
