import logging

logger = logging.getLogger("celltrack")
logger.setLevel(logging.INFO)
