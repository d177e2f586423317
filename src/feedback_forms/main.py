from __future__ import annotations

import asyncio
import logging

from .admin import run_admin
from .bot import run_bot
from .config import Settings


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        async def _runner() -> None:
            await asyncio.gather(run_bot(), run_admin())

        asyncio.run(_runner())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
