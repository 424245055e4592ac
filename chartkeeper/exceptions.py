"""
Custom exception hierarchy for chartkeeper.

This module defines structured exception types used across chartkeeper.
All exceptions inherit from :class:`ChartKeeperError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class ChartKeeperError(Exception):
    """Base exception for all chartkeeper errors.

    All chartkeeper-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class NetworkError(ChartKeeperError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class NotFoundError(NetworkError):
    """Raised when a remote resource answers with HTTP 404."""

    __slots__ = ()


class RegistryError(NetworkError):
    """Raised for failures talking to a Helm repository or OCI registry.

    Args:
        message: Error description.
        chart_name: Name of the chart involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("chart_name",)

    def __init__(
        self,
        message: str,
        *,
        chart_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.chart_name = chart_name
        if chart_name is not None:
            self.details["chart"] = chart_name


class RepositoryError(ChartKeeperError):
    """Raised when a source-control platform client cannot serve a request.

    Args:
        message: Error description.
        platform: Platform identifier (``github``, ``gitlab``, ``bitbucket``).
        repository: ``owner/repo`` identity of the repository.
        path: Repository path being accessed, if any.
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("platform", "repository", "path", "original_error")

    def __init__(
        self,
        message: str,
        *,
        platform: Optional[str] = None,
        repository: Optional[str] = None,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "platform", platform)
        _add_if(details, "repository", repository)
        _add_if(details, "path", path)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.platform = platform
        self.repository = repository
        self.path = path
        self.original_error = original_error


class ConfigError(ChartKeeperError):
    """Raised when configuration cannot be loaded or validated.

    Args:
        message: Error description.
        config_path: Path of the configuration file involved.
        option: Name of the offending option.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option
