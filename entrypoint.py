import uvicorn
from constants import APP_ENV, HOST, LOG_FILE, LOG_LEVEL, PORT
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from app import app
from logging_config import get_logger

logger = get_logger(__name__)


def main():
    logger.info(f"Starting chat server on {HOST}:{PORT} ({APP_ENV})")
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
