"""Enumeration type definitions"""

from enum import Enum


class FieldType(str, Enum):
    """Field kinds a form can contain"""

    # Text inputs
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PASSWORD = "password"
    PHONE = "phone"
    URL = "url"

    # Number inputs
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"

    # Selection inputs
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    TOGGLE = "toggle"

    # Date/time inputs
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"

    # File inputs
    FILE = "file"
    IMAGE = "image"
    SIGNATURE = "signature"

    # Interactive inputs
    RATING = "rating"
    SLIDER = "slider"
    MATRIX = "matrix"

    # Location inputs
    ADDRESS = "address"
    LOCATION = "location"

    # Calculated/dynamic fields
    CALCULATED = "calculated"
    LOOKUP = "lookup"
    HIDDEN = "hidden"

    # Layout elements
    SECTION_BREAK = "section_break"
    PAGE_BREAK = "page_break"
    HTML_CONTENT = "html_content"


class FieldCategory(str, Enum):
    INPUT = "input"
    SELECTION = "selection"
    DATE = "date"
    FILE = "file"
    INTERACTIVE = "interactive"
    LOCATION = "location"
    CALCULATED = "calculated"
    LAYOUT = "layout"


class FieldWidth(str, Enum):
    QUARTER = "quarter"
    HALF = "half"
    THREE_QUARTERS = "three_quarters"
    FULL = "full"


class FormType(str, Enum):
    UAD_3_6 = "UAD_3_6"
    UAD_2_6 = "UAD_2_6"
    BPO = "BPO"
    OTHER = "Other"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class ValidationRuleType(str, Enum):
    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CUSTOM = "custom"


class PrefillSource(str, Enum):
    API = "api"
    INTERNAL = "internal"
    LOOKUP = "lookup"


class LookupDataSource(str, Enum):
    API = "api"
    DATABASE = "database"
    STATIC = "static"


class CarryforwardMode(str, Enum):
    """How a value is copied from its source field"""

    DEFAULT = "default"
    MIRROR = "mirror"


class OutputFormat(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    BOOLEAN = "boolean"
    LIST = "list"


class DiagnosticStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    CRASHED = "crashed"


class DiagnosticErrorType(str, Enum):
    SCHEMA_ERROR = "SchemaError"
    RENDER_ERROR = "RenderError"
    CONFIG_ERROR = "ConfigError"
    FATAL_ERROR = "FatalError"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class FormulaType(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    CUSTOM = "custom"


class ApplyTo(str, Enum):
    ALL = "all"
    COMPARABLES = "comparables"
    SPECIFIC = "specific"


class GridType(str, Enum):
    SALES = "sales"
    RENTAL = "rental"
    LISTING = "listing"


class GridRowType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    DROPDOWN = "dropdown"
    BOOLEAN = "boolean"


class SettingsBackend(str, Enum):
    MEMORY = "memory"
    DB = "db"
