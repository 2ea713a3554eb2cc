"""Application entry point for ClipBridge server."""

from clipbridge.app import App
from clipbridge.config import Config
from clipbridge.logging import setup_logging
from clipbridge.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
