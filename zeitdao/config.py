from pathlib import Path

# Base directory for the engine's on-disk state
BASE_DIR = Path(__file__).resolve().parent
STATE_DIR = BASE_DIR / "state"

# Storage locations
ENGINE_FILE = STATE_DIR / "engine.yaml"
LEDGER_FILE = STATE_DIR / "ledger.yaml"
LOCK_DIR = STATE_DIR / "locks"
DB_FILE = STATE_DIR / "zeitdao.db"

# Default files
DEFAULT_CHARTER_FILE = BASE_DIR / "charters" / "default.yaml"

# Host ledger
NATIVE_ASSET = "native"

# Audit / API / logging
AUDIT_LOG_FILE = STATE_DIR / "audit.log"
API_TOKEN_ENV = "ZEITDAO_API_TOKEN"
API_TOKEN_FILE = BASE_DIR / "api_tokens.txt"
LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
LOG_ENV_ENV = "ZEITDAO_LOG_ENV"
