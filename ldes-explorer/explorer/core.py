"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, configuration constants
"""

import logging
import sys
import os
from datetime import datetime
from pathlib import Path
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the repository root
load_dotenv(Path(__file__).resolve().parents[2] / '.env')

# Network timeout for HTTP requests (seconds)
REQUEST_TIMEOUT = float(os.getenv("LDES_REQUEST_TIMEOUT", 30))

USER_AGENT = os.getenv("LDES_USER_AGENT", "LDESExplorer/1.0")

# Members of one fragment materialized concurrently
PREFETCH_WORKERS = int(os.getenv("LDES_PREFETCH_WORKERS", 4))

# Link following limits for traversal queries
FOLLOW_MAX_DEPTH = int(os.getenv("LDES_FOLLOW_MAX_DEPTH", 3))
FOLLOW_MAX_DOCUMENTS = int(os.getenv("LDES_FOLLOW_MAX_DOCUMENTS", 50))

# Seconds between tail re-probes when following a growing log
POLL_INTERVAL = float(os.getenv("LDES_POLL_INTERVAL", 10))

# Link relation types advertised by artifacts
EVENT_STREAM_REL = "https://w3id.org/ldes#EventStream"
EVENT_LOG_REL = os.getenv("LDES_EVENT_LOG_REL", "https://w3id.org/ldes#eventLog")

LOG_LEVEL = os.getenv("LDES_LOG_LEVEL", "INFO").upper()


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', record.name)
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"

def setup_logger(name="explorer", log_file=None, level=LOG_LEVEL):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console (stderr) and optional File handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != "explorer":
        logger.propagate = True
        setup_logger("explorer", log_file=log_file, level=level)
        return logger

    if logger.handlers:
        if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(CompanyFormatter())
            logger.addHandler(file_handler)
        return logger

    formatter = CompanyFormatter()

    # Console handler; stdout carries the member stream
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# Global logger instance
logger = setup_logger()
