"""
Sheet Ledger API - Flask application factory.

Routes translate JSON requests into table operations on the ledger
spreadsheet. The SheetsClient is created and authenticated once, inside
create_app, and stored in app.extensions; if authentication fails the factory
raises and no application is ever served.
"""

import logging
import time
from datetime import datetime, timezone

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from sheet_ledger import __version__
from sheet_ledger.config.settings import Config
from sheet_ledger.errors import AuthenticationError, RemoteOperationError, SheetLedgerError
from sheet_ledger.sheets import handler
from sheet_ledger.sheets.api import SheetsClient

logger = logging.getLogger(__name__)

# URL slug -> table key
TABLE_ROUTES = {
    'registro': 'registro',
    'meta': 'metas',
    'organizador': 'organizadores',
}


def connect_sheets(config) -> SheetsClient:
    """
    Build and authenticate the SheetsClient, retrying the first connection.

    Raises:
        ValueError / FileNotFoundError: If configuration is incomplete
        AuthenticationError: If the spreadsheet cannot be reached
    """
    config.validate_required_settings()
    client = SheetsClient.from_config(config)

    max_retries = max(int(config.CONNECT_RETRIES), 1)
    for attempt in range(max_retries):
        try:
            client.connect()
            return client
        except AuthenticationError as e:
            if attempt == max_retries - 1:
                raise
            logger.warning(f"Sheets connection attempt {attempt + 1} failed ({e.message}), retrying...")
            time.sleep(2 ** attempt)  # Exponential backoff


def _sheets_client() -> SheetsClient:
    return current_app.extensions['sheets_client']


def _register_table_routes(app: Flask, slug: str, table_key: str):
    """Register add/update/delete POST routes for one table."""

    def add_view():
        result = handler.add_record(_sheets_client(), table_key, request.get_json(silent=True))
        return jsonify(result), 200

    def update_view():
        result = handler.update_record(_sheets_client(), table_key, request.get_json(silent=True))
        return jsonify(result), 200

    def delete_view():
        result = handler.delete_record(_sheets_client(), table_key, request.get_json(silent=True))
        return jsonify(result), 200

    app.add_url_rule(f'/api/add-{slug}', f'add_{slug}', add_view, methods=['POST'])
    app.add_url_rule(f'/api/update-{slug}', f'update_{slug}', update_view, methods=['POST'])
    app.add_url_rule(f'/api/delete-{slug}', f'delete_{slug}', delete_view, methods=['POST'])


def create_app(config=None, sheets_client: SheetsClient = None) -> Flask:
    """
    Application factory.

    Args:
        config: Config class or instance (defaults to Config)
        sheets_client (SheetsClient): Pre-built client; when omitted one is
                                      created from config and authenticated

    Raises:
        AuthenticationError: If the Sheets connection cannot be established
    """
    config = config or Config

    if sheets_client is None:
        logger.info("📊 Authenticating with Google Sheets...")
        sheets_client = connect_sheets(config)
        logger.info("✅ Google Sheets connection successful")

    app = Flask(__name__)
    app.config['DEBUG'] = config.is_development()
    app.json.sort_keys = False

    # Add proxy fix for hosting platforms (handles X-Forwarded headers)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    CORS(app, resources={r'/api/*': {'origins': config.ALLOWED_ORIGINS}})

    app.extensions['sheets_client'] = sheets_client

    @app.route('/', methods=['GET'])
    def health_check():
        """Simple health check endpoint for hosting platforms."""
        return jsonify({
            'status': 'healthy',
            'service': 'Sheet Ledger API',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': __version__,
        })

    @app.route('/health', methods=['GET'])
    def detailed_health():
        """Detailed health check, re-opening the spreadsheet."""
        checks = {'spreadsheet': False}
        try:
            _sheets_client().connect()
            checks['spreadsheet'] = True
        except AuthenticationError as e:
            logger.warning(f"Spreadsheet check failed: {e.message}")

        all_healthy = all(checks.values())
        return jsonify({
            'status': 'healthy' if all_healthy else 'degraded',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'checks': checks,
        }), 200 if all_healthy else 503

    @app.route('/api/get-all-data', methods=['GET'])
    def get_all_data():
        return jsonify(handler.get_all_data(_sheets_client())), 200

    for slug, table_key in TABLE_ROUTES.items():
        _register_table_routes(app, slug, table_key)

    @app.errorhandler(SheetLedgerError)
    def handle_ledger_error(e):
        body = {'success': False, 'message': e.message}
        if isinstance(e, RemoteOperationError):
            body['error'] = e.cause
            logger.error(f"{request.method} {request.path} failed: {e.cause}")
        else:
            logger.warning(f"{request.method} {request.path} rejected: {e.message}")
        return jsonify(body), e.status_code

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors"""
        logger.warning(f"404 - Path not found: {request.path}")
        return jsonify({'success': False, 'message': 'Endpoint não encontrado.'}), 404

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'success': False, 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle all unhandled exceptions"""
        logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'message': 'Erro interno do servidor.'}), 500

    logger.info(f"Registered endpoints for tables: {', '.join(TABLE_ROUTES.values())}")
    return app
