"""
PocketCalc
Main application entry point: sets up logging and serves the calculator API
"""
import logging
import os
import time

import config
from api import create_app

logger = logging.getLogger("pocketcalc")


def setup_logging(level=config.LOG_LEVEL, logs_dir=config.LOGS_DIR):
    """Log to the console and to a timestamped file under logs_dir; returns the file path"""
    os.makedirs(logs_dir, exist_ok=True)
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(logs_dir, f"pocketcalc_{timestamp}.log")

    root = logging.getLogger("pocketcalc")
    root.setLevel(logging.DEBUG)

    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)-28s | %(message)s",
        datefmt="%H:%M:%S"
    ))
    root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(ch)

    logger.info("Logging to %s", log_file)
    return log_file


def main():
    setup_logging()
    app = create_app()

    logger.info("%s %s starting on http://%s:%s", config.APP_NAME, config.VERSION,
                config.WEB_HOST, config.WEB_PORT)
    logger.info("Access from this device: http://localhost:%s", config.WEB_PORT)
    app.run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)


if __name__ == "__main__":
    main()
