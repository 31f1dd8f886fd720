"""Main entry point for the Buzzwin engagement API"""
import logging

import uvicorn

from buzzwin.config import API_HOST, API_PORT, LOG_LEVEL

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server"""
    logger.info(f"Starting Buzzwin API on {API_HOST}:{API_PORT}")
    uvicorn.run(
        "buzzwin.api.server:create_api_application",
        factory=True,
        host=API_HOST,
        port=API_PORT,
        log_level=LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
