"""
Constants for the inventory application.
Centralizes magic numbers and configuration values for better maintainability.
"""

# --------------------------------------------------------------------------------------
# Location hierarchy
# --------------------------------------------------------------------------------------
MAX_LOCATION_DEPTH = 5            # Root locations have depth 1
LOCATION_PATH_SEPARATOR = "."
MAX_LOCATION_NAME_LENGTH = 64
MAX_LOCATION_DESCRIPTION_LENGTH = 500

# --------------------------------------------------------------------------------------
# Workspaces
# --------------------------------------------------------------------------------------
MAX_WORKSPACE_NAME_LENGTH = 64
DEFAULT_WORKSPACE_NAME = "My Workspace"

# --------------------------------------------------------------------------------------
# Boxes
# --------------------------------------------------------------------------------------
MAX_BOX_NAME_LENGTH = 100
MAX_BOX_DESCRIPTION_LENGTH = 10_000
MAX_TAG_LENGTH = 64

BOX_SHORT_CODE_LENGTH = 10
BOX_SHORT_CODE_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# --------------------------------------------------------------------------------------
# QR codes
# --------------------------------------------------------------------------------------
QR_BATCH_MIN = 1
QR_BATCH_MAX = 100

QR_SHORT_CODE_PREFIX = "QR-"
QR_SHORT_CODE_LENGTH = 6          # Random part, after the prefix
QR_SHORT_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
QR_SHORT_CODE_PATTERN = r"^QR-[A-Z0-9]{6}$"

# Attempts per row before short-code allocation gives up
SHORT_CODE_MAX_ATTEMPTS = 100

# --------------------------------------------------------------------------------------
# Pagination
# --------------------------------------------------------------------------------------
DEFAULT_BOXES_PER_PAGE = 50
MAX_BOXES_PER_PAGE = 100
