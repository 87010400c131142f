#!/usr/bin/env python3
"""
Sheet Ledger API - WSGI entry point
Serves the ledger REST endpoints for hosting platforms (Heroku, Railway, Render, etc.)

The application authenticates with Google Sheets while this module is
imported. If that fails the import raises, so neither the development server
nor a WSGI server ever accepts requests.
"""

import sys
import logging

from sheet_ledger.app import create_app
from sheet_ledger.config.settings import Config


def setup_logging():
    """
    Configure production-ready logging with different levels for different environments.
    """
    # Determine log level from configuration
    log_level = str(Config.LOG_LEVEL).upper()
    if log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
        log_level = 'INFO'

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=[
            # Always log to stdout for hosting platforms
            logging.StreamHandler(sys.stdout)
        ] + ([logging.FileHandler('sheet_ledger.log')] if Config.ENABLE_FILE_LOGGING else [])
    )

    # Set specific loggers for better production debugging
    logging.getLogger('werkzeug').setLevel(logging.WARNING)  # Reduce Flask noise
    logging.getLogger('urllib3').setLevel(logging.WARNING)   # Reduce requests noise

    return logging.getLogger(__name__)

logger = setup_logging()

try:
    # Create the Flask app instance (required for WSGI servers)
    app = create_app()
except Exception as e:
    logger.critical(f"❌ Server not started, Google Sheets authentication failed: {str(e)}")
    raise

# WSGI entry point for production servers
application = app


def main():
    """
    Development server entry point.
    In production, use a WSGI server like Gunicorn.
    """
    config = Config()

    logger.info("=" * 60)
    logger.info("📒 SHEET LEDGER API - DEVELOPMENT SERVER")
    logger.info("=" * 60)
    logger.info("⚠️  For production, use: gunicorn app:app")
    logger.info(f"🌐 Server starting on {config.HOST}:{config.PORT}")
    logger.info(f"🔓 Allowed origins: {', '.join(config.ALLOWED_ORIGINS)}")
    logger.info("✅ Endpoints: /api/get-all-data, /api/add-registro, /api/update-registro, ...")

    try:
        app.run(
            host=config.HOST,
            port=int(config.PORT),
            debug=config.is_development(),
            threaded=True,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info("\n👋 Development server stopped")


if __name__ == '__main__':
    main()
