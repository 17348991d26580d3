"""
API Module Entry Point

Allows execution via: python -m inbox_cron.services.api
"""

import uvicorn

from inbox_cron.utils.config import get_settings
from inbox_cron.utils.logging import setup_logging


def main() -> None:
    """Serve the HTTP API with uvicorn."""
    settings = get_settings()
    setup_logging(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)

    uvicorn.run(
        "inbox_cron.services.api.app:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
