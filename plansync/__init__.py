from loguru import logger

# Silent for library callers until configure_logging() is called.
logger.disable("plansync")
