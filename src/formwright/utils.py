"""Utility functions for Formwright application"""

import logging
import re
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Literal, Mapping, Optional, Tuple, Type

logger = logging.getLogger(__name__)


BackoffStrategy = Literal["exponential", "fixed"]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def canonicalify(p: Path | str) -> Path:
    return Path(p).expanduser().resolve()


def ensure_path(p: Path | str) -> Path:
    path = canonicalify(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def retry(
    times: int,
    initial_delay: float = 1,
    backoff: BackoffStrategy = "exponential",
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[tuple, dict, Exception, int], None]] = None,
):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(times):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    is_last_attempt = attempt == times - 1
                    error_msg = str(e)[:100]

                    if is_last_attempt:
                        logger.error(f"Call failed, max retries ({times}) reached")
                        raise

                    logger.warning(
                        f"Call failed (attempt {attempt + 1}/{times}), "
                        f"retrying in {delay}s. Error: {error_msg}"
                    )

                    if on_retry:
                        on_retry(args, kwargs, e, attempt + 1)

                    time.sleep(delay)

                    if backoff == "exponential":
                        delay *= 2

        return wrapper

    return decorator


def sanitize(sensitive: str | None, keep_chars: int = 2) -> str:
    """Mask sensitive information for logging.

    Args:
        sensitive: The sensitive string to mask (e.g., token, password, URL)
        keep_chars: Number of leading and trailing characters to keep

    Returns:
        Masked string with middle characters replaced by asterisks.

    Examples:
        >>> sanitize("prop-10188223")
        'pr***23'
        >>> sanitize(None)
        '***'
    """
    if not sensitive:
        return "***"

    if len(sensitive) <= keep_chars * 2:
        return "***"

    return f"{sensitive[:keep_chars]}***{sensitive[-keep_chars:]}"


def get_nested_value(obj: Any, path: str) -> Any:
    """Read a dot-separated path out of nested mappings.

    Missing keys and non-mapping intermediates resolve to None.

    Examples:
        >>> get_nested_value({"user": {"email": "a@b.c"}}, "user.email")
        'a@b.c'
        >>> get_nested_value({"user": {}}, "user.email") is None
        True
    """
    current = obj
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
        if current is None:
            return None
    return current


def parse_number(value: Any, default: float = 0.0) -> float:
    """Parse a number permissively.

    Non-numeric characters are stripped from text ("$1,250.50" -> 1250.5);
    anything that still fails to parse yields ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return default
    try:
        return float(cleaned)
    except ValueError:
        return default


def is_empty_value(value: Any) -> bool:
    """Empty means None, blank text or an empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False
