"""Run the memlane HTTP server.

    python -m memlane
"""

import uvicorn

from memlane.api.app import create_app
from memlane.config import get_settings
from memlane.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )

    app = create_app(settings)
    logger.info("server_starting", host=settings.api.host, port=settings.api.port)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
