"""
Run the card admin API with uvicorn.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from cardadmin.app import create_app
from cardadmin.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Card admin API server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override LOG_LEVEL from the environment",
    )
    args = parser.parse_args()

    settings = get_settings()
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = create_app(settings)
    logger.info("Serving card admin on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
