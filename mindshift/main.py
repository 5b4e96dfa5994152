"""Main entry point for the MindShift API server"""
import logging
import uvicorn
from mindshift.config import validate_config, LOG_LEVEL, API_HOST, API_PORT, STORAGE_BACKEND

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    # Validate configuration
    logger.info("Validating configuration...")
    validate_config()

    from mindshift.api.server import create_api_application
    app = create_api_application()

    logger.info(f"Starting API on {API_HOST}:{API_PORT} (storage: {STORAGE_BACKEND})")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
