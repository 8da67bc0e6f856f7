#!/usr/bin/env python3
"""Main entry point for ProxyFail.

Runs the token rotation and session reaping sweeps as a standalone worker.
Serve the HTTP API with: uvicorn proxyfail.api.gateway:app
"""

import signal
import threading

from proxyfail.common.logging import get_logger
from proxyfail.common.config import get_config
from proxyfail.api.service import AttendanceService

logger = get_logger(__name__)


def main():
    """Main entry point."""
    config = get_config()
    logger.info(f"ProxyFail initialized in {config.environment.value} mode")
    logger.info(f"Project root: {config.project_root}")

    service = AttendanceService(config=config)
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    service.start_sweeps()
    logger.info(
        f"Sweeps running (rules v{service.rules.version}, "
        f"rotation every {service.rotator.interval}, reaping every {service.reaper.interval})"
    )
    stop.wait()
    service.shutdown()
    logger.info("ProxyFail worker stopped")


if __name__ == "__main__":
    main()
