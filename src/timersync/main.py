"""Application entry point for the timersync server."""

from timersync.app import App
from timersync.config import Config
from timersync.logging import setup_logging
from timersync.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
