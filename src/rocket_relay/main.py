"""Entry point: runs the Rocket.Chat adapter with a minimal ping responder."""

import asyncio
import logging
import signal
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config.settings import settings
from rocket_relay.models import ReceiveMessageEvent
from rocket_relay.platforms.base import PlatformAdapter

# ── Logging ────────────────────────────────────────────────


def setup_logging(debug: bool = False) -> None:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    level = logging.DEBUG if debug else logging.INFO

    # File handler
    fh = RotatingFileHandler(
        log_dir / "rocket_relay.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    fh.setFormatter(formatter)
    fh.setLevel(level)

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(formatter)
    ch.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(fh)
    root.addHandler(ch)

    # Quiet noisy loggers
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ── Responder ──────────────────────────────────────────────


class PingResponder:
    """Answers "ping" with "PONG". Stands in for a real bot framework."""

    def __init__(self, adapter: PlatformAdapter) -> None:
        self._adapter = adapter
        self._tasks: set[asyncio.Task] = set()

    def emit(self, event: ReceiveMessageEvent) -> None:
        if event.text.lower() != "ping":
            return
        task = asyncio.create_task(self._reply(event.channel, "PONG"))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _reply(self, channel: str, text: str) -> None:
        try:
            await self._adapter.send_message(channel, text)
        except Exception:
            logging.getLogger(__name__).exception("Reply to %s failed", channel)


# ── Main ───────────────────────────────────────────────────


async def main() -> None:
    setup_logging(settings.rocket_debug)
    logger = logging.getLogger(__name__)
    logger.info("Starting %s...", settings.bot_name)

    from rocket_relay.platforms.rocket_bot import AdapterConfig, create_adapter

    config = AdapterConfig.from_settings(settings)
    adapter = await create_adapter(config)
    adapter.register_at(PingResponder(adapter))

    # Wait for shutdown signal
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    logger.info("%s is running! Press Ctrl+C to stop.", settings.bot_name)
    await stop_event.wait()

    logger.info("Shutting down...")
    await adapter.close()
    logger.info("Goodbye!")


if __name__ == "__main__":
    asyncio.run(main())
