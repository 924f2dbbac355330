"""Photo URL validation and quality scoring."""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from entity_photos.domain.photos import ErrorKind, ValidationResult, http_error_kind
from entity_photos.services.semaphore import Semaphore

_IMAGE_CONTENT_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/bmp",
    "image/tiff",
)
MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024
MIN_FILE_SIZE_BYTES = 100
_USER_AGENT = "Mozilla/5.0 (compatible; PhotoValidator/1.0)"

_logger = logging.getLogger(__name__)


@dataclass
class PhotoValidator:
    """Validates candidate photo URLs with a metadata-only probe."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 5.0
    max_concurrency: int = 3

    async def validate(
        self, url: str, timeout: float | None = None
    ) -> ValidationResult:
        """Probe a URL and classify it as a usable image or not."""
        resolved_timeout = self.timeout_seconds if timeout is None else timeout
        try:
            response = await asyncio.wait_for(
                self.http_client.head(
                    url,
                    headers={"User-Agent": _USER_AGENT},
                    follow_redirects=True,
                    timeout=resolved_timeout,
                ),
                timeout=resolved_timeout,
            )
        except (httpx.TimeoutException, TimeoutError):
            return ValidationResult(is_valid=False, error_kind=ErrorKind.TIMEOUT.value)
        except httpx.TransportError as exc:
            _logger.debug("Photo probe network failure for %s: %s", url, exc)
            return ValidationResult(
                is_valid=False, error_kind=ErrorKind.NETWORK_ERROR.value
            )
        except Exception:
            _logger.warning("Photo probe failed unexpectedly for %s", url, exc_info=True)
            return ValidationResult(
                is_valid=False, error_kind=ErrorKind.UNKNOWN_ERROR.value
            )
        return classify_response(response)

    async def validate_many(
        self, urls: list[str], max_concurrency: int | None = None
    ) -> dict[str, ValidationResult]:
        """Validate several URLs with a bounded number of concurrent probes."""
        unique_urls = list(dict.fromkeys(urls))
        if not unique_urls:
            return {}
        semaphore = Semaphore(max_concurrency or self.max_concurrency)

        async def _validate_one(url: str) -> ValidationResult:
            async with semaphore:
                return await self.validate(url)

        results = await asyncio.gather(*(_validate_one(url) for url in unique_urls))
        return dict(zip(unique_urls, results, strict=True))


def classify_response(response: httpx.Response) -> ValidationResult:
    """Turn probe response headers into a validation result."""
    if not response.is_success:
        return ValidationResult(
            is_valid=False, error_kind=http_error_kind(response.status_code)
        )

    content_type = response.headers.get("content-type")
    if not content_type or not is_image_content_type(content_type):
        return ValidationResult(
            is_valid=False,
            error_kind=ErrorKind.INVALID_CONTENT_TYPE.value,
            content_type=content_type,
        )

    file_size = _parse_content_length(response.headers.get("content-length"))
    if file_size is not None:
        if file_size > MAX_FILE_SIZE_BYTES:
            return ValidationResult(
                is_valid=False,
                error_kind=ErrorKind.FILE_TOO_LARGE.value,
                content_type=content_type,
                file_size_bytes=file_size,
            )
        if file_size < MIN_FILE_SIZE_BYTES:
            return ValidationResult(
                is_valid=False,
                error_kind=ErrorKind.FILE_TOO_SMALL.value,
                content_type=content_type,
                file_size_bytes=file_size,
            )

    return ValidationResult(
        is_valid=True, content_type=content_type, file_size_bytes=file_size
    )


def is_image_content_type(content_type: str) -> bool:
    """Return True when a content type is on the image allow-list."""
    lowered = content_type.lower()
    return any(image_type in lowered for image_type in _IMAGE_CONTENT_TYPES)


def quality_score(result: ValidationResult) -> int:
    """Rank a validated photo from 0 to 100; invalid photos score 0."""
    if not result.is_valid:
        return 0

    score = 50
    if result.content_type:
        content_type = result.content_type.lower()
        if "webp" in content_type:
            score += 12
        elif "jpeg" in content_type or "jpg" in content_type:
            score += 10
        elif "png" in content_type:
            score += 8

    size = result.file_size_bytes
    if size:
        if size > 500_000:
            score += 15
        elif size > 100_000:
            score += 10
        elif size > 20_000:
            score += 5

    return min(100, max(0, score))


def _parse_content_length(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None
