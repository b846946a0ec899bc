import logging

logger = logging.getLogger("wikichunks")
logger.addHandler(logging.NullHandler())
