"""Logging setup shared by the API and the indexing script"""
import logging

from src.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = None):
    """Configure root logging once. Safe to call more than once."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    # Keep SDK request logs out of the INFO stream
    for noisy in ("httpx", "openai", "anthropic", "pinecone"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
