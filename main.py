"""Run the Telegram RAG bot HTTP server (dashboard API + Telegram webhook)."""

import logging

import uvicorn

from ragbot.api import create_app
from ragbot.config import get_config


def main() -> None:
    config = get_config()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
