import os
import sys
from aiohttp import web
import logging
from logging.config import dictConfig
import json


def configure_logging():
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG)


def invoke():
    configure_logging()

    from social.graze.webfinger.app.config import Settings
    from social.graze.webfinger.app.server import start_web_server
    from social.graze.webfinger.model.store import ConfigError

    settings = Settings()  # type: ignore

    try:
        web.run_app(start_web_server(settings), port=settings.http_port)
    except ConfigError as e:
        logging.critical("Failed to load config: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    invoke()
