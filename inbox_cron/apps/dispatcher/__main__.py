"""
Dispatcher Module Entry Point

Allows execution via: python -m inbox_cron.apps.dispatcher

Delegates to scheduler for all execution modes (scheduled and RUN_ONCE).
"""

import asyncio

from inbox_cron.apps.dispatcher.scheduler import main

if __name__ == "__main__":
    asyncio.run(main())
