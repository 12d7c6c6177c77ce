import logging

from app.common.config import LOG_LEVEL


def get_logger(name: str) -> logging.Logger:
    """
    Logger for FastAPI + Uvicorn.

    - One stream handler per logger, attached on first use
    - Level taken from SCHOOLFANTA_LOG_LEVEL
    - No propagation, so uvicorn's root config does not print lines twice
    """

    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        )

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        logger.propagate = False

    return logger
