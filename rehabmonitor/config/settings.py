"""
Configuration settings for the RehabMonitor client.
"""

import os

# ----------------------------------------------------------------------
# Ledger Keys
# ----------------------------------------------------------------------
INDEX_KEY = os.getenv("REHABMONITOR_INDEX_KEY", "rehab_keys")  # Holds the JSON list of record ids
RECORD_KEY_PREFIX = os.getenv("REHABMONITOR_RECORD_PREFIX", "rehab_")  # Prefix + id addresses one record
ID_SUFFIX_LENGTH = 7  # Random base-36 characters appended to the millisecond timestamp

# ----------------------------------------------------------------------
# Local Ledger Storage
# ----------------------------------------------------------------------
DATABASE_URL = os.getenv("REHABMONITOR_DATABASE_URL", "sqlite:///data/ledger.db")

# ----------------------------------------------------------------------
# Security Settings
# ----------------------------------------------------------------------
MASTER_KEY_ENV_VAR = "REHABMONITOR_MASTER_KEY"  # Hex encoded 256-bit AES-GCM key
AES_GCM_KEY_SIZE = 32
AES_GCM_NONCE_SIZE = 12
ENCRYPTED_METRICS_PREFIX = "FHE-"  # Marks metrics produced by the simulated FHE step

# ----------------------------------------------------------------------
# Records
# ----------------------------------------------------------------------
MAX_PROGRESS_SCORE = 100

# ----------------------------------------------------------------------
# Status Notices
# ----------------------------------------------------------------------
SUCCESS_NOTICE_SECONDS = 2
ERROR_NOTICE_SECONDS = 3

# ----------------------------------------------------------------------
# Miscellaneous
# ----------------------------------------------------------------------
DEBUG_MODE = os.getenv("REHABMONITOR_DEBUG", "").lower() in ("1", "true", "yes")
