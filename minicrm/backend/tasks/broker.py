"""
Taskiq Broker Configuration.

Configures the message broker for background task processing.
Uses Redis as the backend; connection, queue name and result expiry come
from database.yaml (``redis`` section) and config/.env.

Usage:
    taskiq worker minicrm.backend.tasks.broker:broker
"""

from typing import TYPE_CHECKING

from minicrm.backend.core.config import get_app_config, get_redis_url
from minicrm.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq import TaskiqState
    from taskiq_redis import ListQueueBroker


def create_broker() -> "ListQueueBroker":
    """
    Create and configure the Taskiq broker.

    Returns:
        Configured ListQueueBroker instance
    """
    from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

    redis_url = get_redis_url()
    broker_config = get_app_config().database.redis.broker

    result_backend = RedisAsyncResultBackend(
        redis_url=redis_url,
        result_ex_time=broker_config.result_expiry_seconds,
    )

    broker = ListQueueBroker(
        url=redis_url,
        queue_name=broker_config.queue_name,
    ).with_result_backend(result_backend)

    logger.debug(
        "Taskiq broker configured",
        extra={
            "queue_name": broker_config.queue_name,
            "result_expiry": broker_config.result_expiry_seconds,
        },
    )
    return broker


_broker: "ListQueueBroker | None" = None


def get_broker() -> "ListQueueBroker":
    """Get the broker instance, creating it if necessary."""
    from taskiq import TaskiqEvents

    global _broker
    if _broker is None:
        _broker = create_broker()

        @_broker.on_event(TaskiqEvents.WORKER_STARTUP)
        async def on_startup(state: "TaskiqState") -> None:
            logger.info("Taskiq worker starting up")

        @_broker.on_event(TaskiqEvents.WORKER_SHUTDOWN)
        async def on_shutdown(state: "TaskiqState") -> None:
            from minicrm.backend.core.database import dispose_engine

            await dispose_engine()
            logger.info("Taskiq worker shutting down")

    return _broker


_tasks_registered = False


def get_worker_broker() -> "ListQueueBroker":
    """Broker with the scheduled tasks registered exactly once."""
    global _tasks_registered
    broker = get_broker()
    if not _tasks_registered:
        from minicrm.backend.tasks.scheduled import register_scheduled_tasks

        register_scheduled_tasks()
        _tasks_registered = True
    return broker


def __getattr__(name: str):
    """Lazy attribute access for the ``taskiq worker`` command."""
    if name == "broker":
        return get_worker_broker()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
