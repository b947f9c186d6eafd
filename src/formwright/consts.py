"""Constants for Formwright application"""

# ==================== File Paths ====================
SETTINGS_DB_PATH = "data/formwright.db"
LOG_FILE_DEFAULT = "data/formwright.log"

# ==================== Timeouts (seconds) ====================
TIMEOUT_HTTP_REQUEST = 30  # 30 seconds - prefill HTTP requests

# ==================== Prefill Defaults ====================
PREFILL_CACHE_TIMEOUT = 300  # seconds
PREFILL_RETRY_ATTEMPTS = 3
PREFILL_RETRY_DELAY = 1  # seconds, doubled after every failed attempt
PREFILL_MAX_WORKERS = 8
PREFILL_ID_PLACEHOLDER = ":id"
FALLBACK_SOURCE_SUFFIX = "_fallback"

DEFAULT_INTERNAL_CONTEXT = {
    "user": {
        "id": "user-123",
        "email": "appraiser@example.com",
        "name": "John Appraiser",
        "organization_id": "org-456",
    },
    "form": {
        "subject_id": "property-789",
        "property_id": "prop-101",
        "borrower_id": "borrower-202",
        "appraiser_id": "appraiser-303",
    },
}

DEFAULT_LOOKUP_TABLES = {
    "user_roles": ["Appraiser", "Reviewer", "Admin", "Trainee"],
    "property_types": ["Single Family", "Condo", "Townhouse", "Multi-Family", "Commercial"],
    "states": ["AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA"],
    "appraisal_purposes": ["Purchase", "Refinance", "Home Equity", "PMI Removal"],
}

# ==================== Field Type Groups ====================
SELECTION_FIELD_TYPES = ("select", "multiselect", "radio", "checkbox")
COMPLEX_FIELD_TYPES = ("calculated", "lookup", "matrix", "signature")
VALUE_RULE_TYPES = ("min", "max", "minLength", "maxLength")
UNARY_OPERATORS = ("is_empty", "is_not_empty")

# ==================== Sales Grid ====================
SUBJECT_COLUMN = "subject"
COMPARABLE_COLUMN_PREFIX = "comparable_"
MIN_COMPARABLES = 1
MAX_COMPARABLES = 6

# ==================== App Settings ====================
DEFAULT_APP_SETTINGS = {
    "app_name": "Project Bobcat",
    "company_name": "Your Company",
    "logo_icon": "Cat",
    "email_notifications_enabled": "false",
    "push_notifications_enabled": "false",
    "terms_of_service": "",
    "privacy_policy": "",
}

DEFAULT_SETTING_TYPES = {
    "email_notifications_enabled": "boolean",
    "push_notifications_enabled": "boolean",
}

# ==================== Database Configuration ====================
DB_MAX_CONNECTIONS = 20
DB_STALE_TIMEOUT = 300  # 5 minutes

DB_PRAGMAS = {
    "journal_mode": "wal",
    "synchronous": "NORMAL",
    "busy_timeout": 5000,  # 5 seconds
    "foreign_keys": 1,
}
