# shared/utils/logger.py
"""
Configuración de logging compartida por todos los servicios
"""
import logging
import sys

from shared.config.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Obtener un logger configurado con el nivel de LOG_LEVEL

    Args:
        name: Nombre del logger (normalmente __name__)

    Returns:
        logging.Logger: Logger listo para usar
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(get_settings().LOG_LEVEL.upper())
    return logger
