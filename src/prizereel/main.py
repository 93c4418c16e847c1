"""
Main entry point for prizereel.

Runs headless plays against the configured backend and logs each result.
"""

import asyncio
import logging
import os
import random
import sys

from prizereel.animation.engine import AnimationEngine
from prizereel.backend import create_backend
from prizereel.catalog.catalog import load_catalog
from prizereel.config.settings import Settings, get_settings
from prizereel.core.events import Event, EventBus, EventType
from prizereel.orchestrator import SequenceOrchestrator


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


async def run_demo(settings: Settings, plays: int = 1) -> None:
    """Play, claim and close `plays` times with the frame loop running."""
    logger = logging.getLogger(__name__)

    catalog = load_catalog(settings.catalog_path)
    rng = random.Random(settings.seed)
    backend = create_backend(catalog, settings.backend, rng=rng)
    engine = AnimationEngine(fps=settings.fps)
    event_bus = EventBus()

    def on_reveal(event: Event) -> None:
        logger.info(f"You won: {event.data.get('name') or event.data.get('item_id')}")

    event_bus.subscribe(EventType.REVEAL, on_reveal)

    orchestrator = SequenceOrchestrator(
        catalog, backend, backend, engine, settings=settings, events=event_bus, rng=rng
    )

    loop_task = asyncio.create_task(engine.run())
    try:
        for number in range(1, plays + 1):
            logger.info(f"Play {number}/{plays} ({settings.mode} mode)")
            session = await orchestrator.play()
            if session.error:
                logger.error(f"Play failed: {session.error}")
            elif orchestrator.machine.is_reveal_open():
                claim = await orchestrator.claim()
                if claim is not None and claim.success:
                    logger.info(
                        f"Claimed: coupon={claim.coupon_code} points={claim.points_added} "
                        f"product={claim.granted_product_slug}"
                    )
            orchestrator.close()
    finally:
        orchestrator.shutdown()
        engine.stop_loop()
        await loop_task
        await backend.close()


def main() -> None:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    settings = get_settings()
    setup_logging(settings.debug)

    logger = logging.getLogger(__name__)
    logger.info("prizereel starting...")

    plays = int(os.getenv("PRIZEREEL_DEMO_PLAYS", "1"))

    try:
        asyncio.run(run_demo(settings, plays))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("prizereel stopped")


if __name__ == "__main__":
    main()
