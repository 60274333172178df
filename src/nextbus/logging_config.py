import logging


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure console logging for the nextbus package."""
    logger = logging.getLogger("nextbus")
    logger.setLevel(level.upper())

    # Prevent duplicate handlers on reload
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter("%(levelname)s: \t %(asctime)s - %(name)s - %(message)s")
        )
        logger.addHandler(console_handler)

    return logger
