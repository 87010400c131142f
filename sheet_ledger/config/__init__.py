# sheet_ledger/config/__init__.py

# Import the settings class from the settings module.
# This makes it accessible directly from the config package.
#
# Instead of: from sheet_ledger.config.settings import Config
# You can use: from sheet_ledger.config import Config

from .settings import Config
