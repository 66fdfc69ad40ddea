"""Configuration loading from environment variables and files."""

import json
import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from src.ports.request import HttpMethod, RequestDescriptor

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("", "0", "false", "no", "off")


class Settings(BaseModel):
    """Runtime configuration for a single command-line exchange.

    Attributes:
        url: Endpoint to call.
        method: GET or POST.
        content_type: Content-Type sent with a POST body.
        body_file_path: Optional JSON file holding the form fields to POST.
        body: Form fields (loaded from file).
        timeout_ms: Milliseconds before the exchange is aborted; 0 disables it.
        synchronous: Block until the response arrives instead of polling.
    """

    url: str = Field(..., description="HTTP endpoint to call.")
    method: HttpMethod = Field(default=HttpMethod.GET, description="HTTP method.")
    content_type: str | None = Field(default=None, description="Content-Type of the POST body.")
    body_file_path: str | None = Field(
        default=None,
        description="Path to JSON object with form fields. If not set, an empty body is sent.",
    )
    body: dict[str, Any] | None = Field(default=None, description="Form fields (populated from file).")
    timeout_ms: int = Field(default=0, ge=0, description="Timeout in milliseconds, 0 for none.")
    synchronous: bool = Field(default=False, description="Run the exchange synchronously.")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that url is a valid HTTP(S) URL.

        Args:
            v: URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// endpoints allowed")
        except Exception as e:
            raise ValueError(f"Invalid request URL: {e}") from e
        return v

    def load_body(self) -> None:
        """Load and validate form fields from the JSON body file.

        Does nothing when no body file is configured.

        Raises:
            ValueError: If file not found, invalid JSON, or not an object.
        """
        if self.body_file_path is None:
            return
        try:
            with open(self.body_file_path) as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ValueError(f"Body file not found: {self.body_file_path}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Body file contains invalid JSON: {self.body_file_path}") from e

        if not isinstance(data, dict):
            raise ValueError("Body file must be a JSON object")

        self.body = data
        logger.debug(f"Loaded {len(data)} form fields from {self.body_file_path}")

    def to_descriptor(self) -> RequestDescriptor:
        """Build the request descriptor for this configuration."""
        return RequestDescriptor(
            url=self.url,
            content_type=self.content_type,
            body=self.body,
            timeout_ms=self.timeout_ms,
            synchronous=self.synchronous,
        )


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{name} must be a boolean (got: {raw})")


def load_settings() -> Settings:
    """Load and validate settings from environment and files.

    Required environment variables:
    - REQUEST_URL: Valid HTTP(S) URL to call.

    Optional:
    - REQUEST_METHOD: GET (default) or POST.
    - REQUEST_CONTENT_TYPE: Content-Type of the POST body.
    - REQUEST_BODY_FILE: JSON object file with form fields.
    - REQUEST_TIMEOUT_MS: Non-negative integer, 0 (default) disables it.
    - REQUEST_SYNCHRONOUS: Boolean, false by default.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or invalid.
        ValueError: If configuration is invalid.
    """
    try:
        url = os.environ["REQUEST_URL"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    method_raw = os.getenv("REQUEST_METHOD", HttpMethod.GET.value)
    try:
        method = HttpMethod(method_raw.strip().upper())
    except ValueError as e:
        raise RuntimeError(f"REQUEST_METHOD must be GET or POST (got: {method_raw})") from e

    timeout_raw = os.getenv("REQUEST_TIMEOUT_MS", "0")
    try:
        timeout_ms = int(timeout_raw)
        if timeout_ms < 0:
            raise ValueError("Must be non-negative")
    except ValueError as e:
        raise RuntimeError(
            f"REQUEST_TIMEOUT_MS must be a non-negative integer (got: {timeout_raw})"
        ) from e

    settings = Settings(
        url=url,
        method=method,
        content_type=os.getenv("REQUEST_CONTENT_TYPE") or None,
        body_file_path=os.getenv("REQUEST_BODY_FILE") or None,
        timeout_ms=timeout_ms,
        synchronous=_parse_bool("REQUEST_SYNCHRONOUS", os.getenv("REQUEST_SYNCHRONOUS", "")),
    )

    settings.load_body()

    timeout = f"{settings.timeout_ms}ms" if settings.timeout_ms else "<disabled>"
    logger.info(
        f"Request configured: {settings.method.value} {settings.url}, "
        f"timeout={timeout}, "
        f"synchronous={settings.synchronous}, "
        f"body_fields={len(settings.body) if settings.body is not None else 0}"
    )

    return settings
