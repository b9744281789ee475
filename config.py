"""
PocketCalc Configuration Settings
"""
import os

# Application Settings
APP_NAME = "PocketCalc"
VERSION = "1.0.0"

# Database Settings
DB_PATH = os.environ.get(
    "POCKETCALC_DB_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "pocketcalc.db"),
)

# Language / number formatting
DEFAULT_LANGUAGE = os.environ.get("POCKETCALC_LANGUAGE", "en")

# Shown on the display when a calculation has no finite result
ERROR_TEXT = "Error"

# Logging
LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
LOG_LEVEL = os.environ.get("POCKETCALC_LOG_LEVEL", "INFO")

# Web Portal settings
WEB_HOST = '0.0.0.0'
WEB_PORT = 8888
