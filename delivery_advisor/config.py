# delivery_advisor/config.py
"""
Central configuration module for the Delivery Advisor.\n
This file defines all shared constants and settings for the application.\n
It includes the studio location, API endpoints and keys, file paths and logging configuration.\n
"""

# Imports of the necessary libraries
import os
import logging

# --- Studio Location ---
"""Defines where every parcel is shipped from.\n
- STUDIO_CITY: The city the print studio ships from, and the only city where pickup is offered.\n
- STUDIO_CITY_REF: The Nova Poshta ref of the studio city, sent as the sender of live price requests.\n
- STUDIO_COORDINATES: Latitude and longitude of the studio, used for route distances.\n
"""
STUDIO_CITY = 'Kyiv'
STUDIO_CITY_REF = '8d5a980d-391c-11dd-90d9-001a92567626'
STUDIO_COORDINATES = (50.4501, 30.5234)

# --- External Services ---
"""Defines the endpoints and credentials of the carrier and weather APIs.\n
Keys are read from the environment (a `.env` file is loaded by the entry points).\n
A missing Nova Poshta key, or one of the demo placeholders, switches the client to the offline tariff.\n
A missing WeatherAPI key switches weather impact to the monthly climatology table.\n
"""
NOVA_POSHTA_API_URL = 'https://api.novaposhta.ua/v2.0/json/'
NOVA_POSHTA_DEMO_KEYS = ('', 'demo_key', 'demo-api-key')
WEATHERAPI_FORECAST_URL = 'http://api.weatherapi.com/v1/forecast.json'
REQUEST_TIMEOUT_SECONDS = 10


def get_nova_poshta_api_key() -> str:
    """Returns the Nova Poshta API key from the environment, or the demo placeholder."""
    return os.getenv('NOVA_POSHTA_API_KEY', 'demo_key')


def get_weather_api_key():
    """Returns the WeatherAPI key from the environment, or None when it is not configured."""
    return os.getenv('WEATHERAPI_KEY') or None


def get_history_path():
    """Returns the path of the route history file, or None when it is not configured."""
    return os.getenv('DELIVERY_HISTORY_PATH') or None

# --- File Paths ---
"""Defines the default locations used by the command line tools.\n
- OUTPUT_DIR: The main directory for all generated output files.\n
- HISTORY_FILENAME_BASE: The base name for generated route history files, without the extension.\n
- ANALYSIS_FILENAME_BASE: The base name for delivery analysis exports, without the extension.\n
- LOG_PATH: The full path to the application's log file.\n
"""
OUTPUT_DIR = 'output'
HISTORY_FILENAME_BASE = os.path.join(OUTPUT_DIR, 'route_history')
ANALYSIS_FILENAME_BASE = os.path.join(OUTPUT_DIR, 'delivery_analysis')
LOG_PATH = os.path.join(OUTPUT_DIR, 'delivery_advisor.log')

# --- Logging Configuration ---
"""Configures the application-wide logger for both console and file output.\n
The logger is initialized once to prevent duplicate handlers.\n
"""
logger = logging.getLogger('delivery_advisor')
logger.setLevel(logging.INFO)
formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

stream_handler = logging.StreamHandler()
stream_handler.setFormatter(formatter)
if not logger.handlers: # Avoid adding duplicate handlers
    logger.addHandler(stream_handler)

def setup_file_logging(log_path: str = LOG_PATH):
    """Sets up the file handler for the application logger.\n
    Any previous file handler is closed and removed before the new one is added,\n
    so repeated runs in the same session do not duplicate log entries.\n
    """
    for handler in logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)

    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

# --- History Generation Parameters ---
"""Defines the parameters for synthetic route history generation.\n
- DEFAULT_HISTORY_ROWS: The default number of delivery records to generate.\n
- HISTORY_LOOKBACK_DAYS: How far back in time the generated pickups are spread.\n
"""
DEFAULT_HISTORY_ROWS = 5000
HISTORY_LOOKBACK_DAYS = 365
