"""Application entry point for the BHXH gateway server."""

from bhxh_gateway.app import App
from bhxh_gateway.config import Config
from bhxh_gateway.logging import setup_logging
from bhxh_gateway.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
