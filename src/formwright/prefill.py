"""Field prefill resolution.

A field's ``prefill_config`` names where its initial value comes from: the
internal context object, an HTTP endpoint, or a static lookup table. The
service never raises to its callers; every failure comes back as a
``PrefillResult`` with ``success=False``, or as a fallback value when the
field configures one.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import BaseModel

from .cache import TTLCache
from .config import PrefillSettings
from .consts import (
    FALLBACK_SOURCE_SUFFIX,
    PREFILL_CACHE_TIMEOUT,
    PREFILL_ID_PLACEHOLDER,
    PREFILL_MAX_WORKERS,
    PREFILL_RETRY_ATTEMPTS,
    PREFILL_RETRY_DELAY,
    TIMEOUT_HTTP_REQUEST,
)
from .enums import PrefillSource
from .errors import ClientError, PrefillException
from .models import FormField, PrefillConfig
from .utils import get_nested_value, retry, sanitize

logger = logging.getLogger(__name__)

NO_SOURCE = "none"


class PrefillResult(BaseModel):
    success: bool
    value: Any = None
    source: str
    cached: bool = False
    error: Optional[str] = None


def _failure(source: str, error: str) -> PrefillResult:
    return PrefillResult(success=False, source=source, error=error)


def _describe_request_error(error: Exception) -> str:
    response = getattr(error, "response", None)
    if response is not None:
        return f"API call failed: {response.status_code} {response.reason or ''}".rstrip()
    return str(error) or "API prefill failed after retries"


class PrefillService:
    """Resolves field prefills.

    Args:
        cache: Shared result cache for API prefills
        context: Internal context object read by ``internal`` prefills
        lookup_tables: Named static tables read by ``lookup`` prefills
        timeout: HTTP timeout in seconds
        session: requests session used for API calls
        retry_initial_delay: Seconds before the second attempt, doubled after each failure
        max_workers: Thread pool size for ``prefill_fields``
        default_cache_timeout: Cache TTL in seconds for fields that leave ``cacheTimeout`` unset
        default_retry_attempts: Attempts for fields that leave ``retryAttempts`` unset
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        context: Optional[Dict[str, Any]] = None,
        lookup_tables: Optional[Dict[str, List[Any]]] = None,
        timeout: int = TIMEOUT_HTTP_REQUEST,
        session: Optional[requests.Session] = None,
        retry_initial_delay: float = PREFILL_RETRY_DELAY,
        max_workers: int = PREFILL_MAX_WORKERS,
        default_cache_timeout: float = PREFILL_CACHE_TIMEOUT,
        default_retry_attempts: int = PREFILL_RETRY_ATTEMPTS,
    ):
        self.cache = cache if cache is not None else TTLCache()
        self.context = context if context is not None else {}
        self.lookup_tables = lookup_tables if lookup_tables is not None else {}
        self.timeout = timeout
        self.session = session or requests.Session()
        self.retry_initial_delay = retry_initial_delay
        self.max_workers = max_workers
        self.default_cache_timeout = default_cache_timeout
        self.default_retry_attempts = default_retry_attempts

    @classmethod
    def from_settings(
        cls,
        settings: PrefillSettings,
        cache: Optional[TTLCache] = None,
        session: Optional[requests.Session] = None,
    ) -> "PrefillService":
        return cls(
            cache=cache,
            context=settings.context,
            lookup_tables=settings.lookup_tables,
            timeout=settings.timeout,
            session=session,
            retry_initial_delay=settings.retry_initial_delay,
            max_workers=settings.max_workers,
            default_cache_timeout=settings.default_cache_timeout,
            default_retry_attempts=settings.default_retry_attempts,
        )

    @staticmethod
    def cache_key(config: PrefillConfig, context_key: Optional[str] = None) -> str:
        return f"{config.source}_{config.key or ''}_{config.endpoint or ''}_{context_key or ''}"

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        return self.cache.clear(pattern)

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def prefill_field(self, field: FormField, context_key: Optional[str] = None) -> PrefillResult:
        """Resolve the prefill value of one field."""
        config = field.prefill_config
        if not config or not config.enabled:
            return _failure(NO_SOURCE, "Prefill not enabled for this field")

        match config.source:
            case PrefillSource.INTERNAL:
                result = self._prefill_from_internal(config)
            case PrefillSource.API:
                result = self._prefill_from_api(config, context_key)
            case PrefillSource.LOOKUP:
                result = self._prefill_from_lookup(config)
            case _:
                result = _failure(config.source or NO_SOURCE, f"Unknown prefill source: {config.source}")

        if not result.success and config.fallback_value is not None:
            logger.info(f"Prefill for field {field.id} failed ({result.error}), using fallback value")
            result = PrefillResult(
                success=True,
                value=config.fallback_value,
                source=f"{config.source}{FALLBACK_SOURCE_SUFFIX}",
            )

        return result

    def prefill_fields(
        self, fields: Iterable[FormField], context_key: Optional[str] = None
    ) -> Dict[str, PrefillResult]:
        """Resolve every prefill-enabled field concurrently.

        Returns:
            Results keyed by field ID, in field order
        """
        targets = [f for f in fields if f.prefill_config and f.prefill_config.enabled]
        if not targets:
            return {}

        results: Dict[str, PrefillResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="prefill") as executor:
            futures = {executor.submit(self.prefill_field, field, context_key): field for field in targets}
            for future in as_completed(futures):
                field = futures[future]
                try:
                    results[field.id] = future.result()
                except Exception as e:
                    logger.error(f"Exception while prefilling field {field.id}: {e}")
                    results[field.id] = _failure(field.prefill_config.source or NO_SOURCE, str(e))

        return {field.id: results[field.id] for field in targets}

    def _prefill_from_internal(self, config: PrefillConfig) -> PrefillResult:
        value = get_nested_value(self.context, config.key or "")
        if value is None:
            return _failure(PrefillSource.INTERNAL.value, f"No value found for key: {config.key}")
        return PrefillResult(success=True, value=value, source=PrefillSource.INTERNAL.value)

    def _prefill_from_lookup(self, config: PrefillConfig) -> PrefillResult:
        data = self.lookup_tables.get(config.key or "")
        if data is None:
            return _failure(PrefillSource.LOOKUP.value, f"Lookup table not found: {config.key}")
        return PrefillResult(success=True, value=data, source=PrefillSource.LOOKUP.value)

    def _prefill_from_api(self, config: PrefillConfig, context_key: Optional[str] = None) -> PrefillResult:
        source = PrefillSource.API.value
        if not config.endpoint:
            return _failure(source, "No endpoint specified")

        endpoint = config.endpoint
        if context_key and PREFILL_ID_PLACEHOLDER in endpoint:
            endpoint = endpoint.replace(PREFILL_ID_PLACEHOLDER, context_key, 1)

        cache_timeout = config.cache_timeout if config.cache_timeout is not None else self.default_cache_timeout
        use_cache = cache_timeout > 0
        key = self.cache_key(config, context_key)
        if use_cache:
            entry = self.cache.get(key)
            if entry is not None:
                logger.debug(f"Prefill cache hit for {sanitize(key, keep_chars=8)}")
                return PrefillResult(success=True, value=entry.data, source=source, cached=True)

        attempts = config.retry_attempts
        if not attempts or attempts < 1:
            attempts = self.default_retry_attempts
        fetch = retry(
            times=attempts,
            initial_delay=self.retry_initial_delay,
            backoff="exponential",
            exceptions=(requests.RequestException,),
            on_retry=PrefillService._check_http_status,
        )(self._fetch)

        try:
            data = fetch(endpoint)
        except ClientError as e:
            return _failure(source, _describe_request_error(e.__cause__ or e))
        except (requests.RequestException, PrefillException) as e:
            return _failure(source, _describe_request_error(e))

        value = data
        if config.field_map:
            value = {}
            for source_path, target in config.field_map.items():
                mapped = get_nested_value(data, source_path)
                if mapped is not None:
                    value[target] = mapped

        if use_cache:
            self.cache.set(key, value, cache_timeout)

        return PrefillResult(success=True, value=value, source=source)

    @staticmethod
    def _check_http_status(_args, _kwargs, error, _attempt):
        status_code = getattr(error.response, "status_code", None) if hasattr(error, "response") else None
        if status_code and 400 <= status_code < 500:
            raise ClientError(f"Client error {status_code}: not retrying") from error

    def _fetch(self, endpoint: str) -> Any:
        logger.debug(f"Fetching prefill data from {endpoint}")
        response = self.session.get(
            endpoint,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()
