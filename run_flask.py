"""Direct Flask server runner using environment variables."""

from __future__ import annotations

import logging

from config import load_config
from core import setup_logger
from services import run_coroutine_sync, start_background_loop
from web import create_app
from web.context import SERVICES_KEY

if __name__ == "__main__":
    # Load configuration
    config = load_config()
    setup_logger(
        name="app",
        level=logging.DEBUG if config.debug else logging.INFO,
        log_file=f"{config.log_folder}/app.log",
    )

    # Services run on a loop in a background thread; views submit to it
    start_background_loop()

    # Create Flask application
    app = create_app(config)
    run_coroutine_sync(app.config[SERVICES_KEY].documents.initialize())

    # Run Flask server
    app.run(host=config.web_host, port=config.web_port, debug=config.debug, use_reloader=False)
