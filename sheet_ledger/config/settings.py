"""
Configuration settings for the Sheet Ledger API.

This module centralizes all configuration management, loading environment variables
and providing access to configuration values throughout the application.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Get the project root directory (two levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file
load_dotenv(PROJECT_ROOT / '.env')


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Config:
    """Configuration class that holds all application settings."""

    # Google Sheets Configuration
    SPREADSHEET_ID = os.getenv('SPREADSHEET_ID')

    # Service account credentials, in order of precedence:
    # a full JSON document, an email + private key pair, or a key file
    GOOGLE_CREDENTIALS_JSON = os.getenv('GOOGLE_CREDENTIALS_JSON')
    SERVICE_ACCOUNT_EMAIL = os.getenv('SERVICE_ACCOUNT_EMAIL')
    PRIVATE_KEY = os.getenv('PRIVATE_KEY')
    CREDENTIALS_PATH = Path(os.getenv('GOOGLE_APPLICATION_CREDENTIALS', PROJECT_ROOT / 'credentials.json'))

    # Read and write access to spreadsheets only
    SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

    # CORS
    ALLOWED_ORIGINS = _split_origins(os.getenv('ALLOWED_ORIGINS', 'http://localhost:3000'))

    # Server Configuration
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 3000))

    # Startup connection attempts before giving up
    CONNECT_RETRIES = int(os.getenv('CONNECT_RETRIES', 3))

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    ENABLE_FILE_LOGGING = os.getenv('ENABLE_FILE_LOGGING', 'false').lower() == 'true'

    # Environment Detection
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')

    @classmethod
    def validate_required_settings(cls):
        """
        Validate that all required environment variables are set.

        Raises:
            ValueError: If any required configuration is missing.
            FileNotFoundError: If no service account credentials can be found.
        """
        required_settings = [
            ('SPREADSHEET_ID', cls.SPREADSHEET_ID),
        ]

        missing_settings = []
        for setting_name, setting_value in required_settings:
            if not setting_value:
                missing_settings.append(setting_name)

        if missing_settings:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_settings)}. "
                f"Please check your .env file."
            )

        if cls.SERVICE_ACCOUNT_EMAIL and not cls.PRIVATE_KEY:
            raise ValueError("SERVICE_ACCOUNT_EMAIL is set but PRIVATE_KEY is missing.")

        if cls.get_credentials_source() is None:
            raise FileNotFoundError(
                f"Google Service Account credentials not found. Set GOOGLE_CREDENTIALS_JSON, "
                f"or SERVICE_ACCOUNT_EMAIL and PRIVATE_KEY, or provide a key file at: {cls.CREDENTIALS_PATH}"
            )

    @classmethod
    def get_credentials_source(cls) -> Optional[str]:
        """Name the credential source that will be used, or None if there is none."""
        if cls.GOOGLE_CREDENTIALS_JSON:
            return 'json'
        if cls.SERVICE_ACCOUNT_EMAIL and cls.PRIVATE_KEY:
            return 'key_pair'
        if Path(cls.CREDENTIALS_PATH).exists():
            return 'file'
        return None

    @classmethod
    def get_service_account_info(cls) -> Dict[str, Any]:
        """
        Build the service account info mapping google-auth expects.

        Returns:
            Dict[str, Any]: Parsed service account JSON

        Raises:
            ValueError: If GOOGLE_CREDENTIALS_JSON is not valid JSON.
            FileNotFoundError: If no credential source is configured.
        """
        source = cls.get_credentials_source()

        if source == 'json':
            try:
                return json.loads(cls.GOOGLE_CREDENTIALS_JSON)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in GOOGLE_CREDENTIALS_JSON: {e}")

        if source == 'key_pair':
            # .env files store the PEM key on one line with literal \n escapes
            return {
                'type': 'service_account',
                'client_email': cls.SERVICE_ACCOUNT_EMAIL,
                'private_key': cls.PRIVATE_KEY.replace('\\n', '\n'),
                'token_uri': 'https://oauth2.googleapis.com/token',
            }

        if source == 'file':
            with open(cls.CREDENTIALS_PATH, encoding='utf-8') as f:
                return json.load(f)

        raise FileNotFoundError("Google Service Account credentials not configured")

    @classmethod
    def is_development(cls):
        """
        Check if the application is running in development mode.

        Returns:
            bool: True if in development mode, False otherwise.
        """
        return cls.ENVIRONMENT == 'development'
