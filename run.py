"""
Ultra Chat - Launcher Script
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from ultrachat.utils.logger import get_logger, setup_logger
from ultrachat.config import Config

logger = get_logger("launcher")


def main():
    """Main entry point"""
    setup_logger(log_level=Config.LOG_LEVEL)
    logger.info("Starting Ultra Chat...")

    # Validate configuration
    errors = Config.validate()
    if errors:
        logger.error("Configuration errors found:")
        for error in errors:
            logger.error(f"  - {error}")
        logger.error("\nPlease check your .env file and ensure GEMINI_API_KEY is set.")
        logger.error("Copy .env.example to .env and add your API key.")
        return 1

    # Import and run main application
    try:
        from ultrachat.main import UltraChatApp
        app = UltraChatApp()
        app.run()
    except KeyboardInterrupt:
        logger.info("\nShutting down Ultra Chat...")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
