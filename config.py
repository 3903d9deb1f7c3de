import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", "DEV"))
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# REST API
API_BASE_URL = os.environ.get("API_BASE_URL", "http://127.0.0.1:8000/api").rstrip("/")

# Unset means aiohttp's own default timeout; there is no retry policy
API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS")) if os.environ.get("API_TIMEOUT_SECONDS") else None

# Geofence radius for pickup/delivery confirmation
try:
    GEOFENCE_RADIUS_METERS = float(os.environ.get("GEOFENCE_RADIUS_METERS", "500"))
    if GEOFENCE_RADIUS_METERS <= 0:
        raise ValueError(f"GEOFENCE_RADIUS_METERS must be positive (got: {GEOFENCE_RADIUS_METERS})")
except ValueError as e:
    print(f"\n ERROR: Invalid GEOFENCE_RADIUS_METERS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive number of meters (e.g., 250, 500)", file=sys.stderr)
    print(f"Current value: {os.environ.get('GEOFENCE_RADIUS_METERS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Rider position broadcast and customer live-route polling interval
LIVE_TRACKING_INTERVAL_SECONDS = float(os.environ.get("LIVE_TRACKING_INTERVAL_SECONDS", "10"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_DIR = os.environ.get("LOG_DIR", "logs")
LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "7"))
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"
