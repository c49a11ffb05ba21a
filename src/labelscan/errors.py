from __future__ import annotations

from typing import Optional


class LabelScanError(Exception):
    """Base class for failures surfaced to callers of the gateways."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LabelScanError):
    """Caller input is missing or malformed; no upstream call was made."""

    status_code = 400


class ConfigurationError(LabelScanError):
    """The upstream credential is not provisioned."""

    status_code = 500


class RateLimited(LabelScanError):
    status_code = 429


class QuotaExhausted(LabelScanError):
    status_code = 402


class UpstreamError(LabelScanError):
    """Non-success upstream status or transport failure."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.details = details


class MalformedUpstreamResponse(LabelScanError):
    """Upstream succeeded but returned no usable text.

    Never leaves the analysis gateway; it is turned into the fallback result.
    """


__all__ = [
    "LabelScanError",
    "ValidationError",
    "ConfigurationError",
    "RateLimited",
    "QuotaExhausted",
    "UpstreamError",
    "MalformedUpstreamResponse",
]
