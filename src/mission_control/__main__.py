"""Mission Control main application."""

import logging
import sys

import uvicorn

from mission_control.factory import create_app, get_config


def main() -> int:
    """Run the application."""
    config = get_config()

    # Configure logging
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = create_app(config)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
