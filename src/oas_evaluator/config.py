"""Runtime settings, overridable from environment variables."""

import os

from pydantic import BaseModel

DEFAULT_STORE_URL = "https://oas-rest-api-evaluator-backend.onrender.com/api"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_STORE_TIMEOUT = 5.0


class Settings(BaseModel):
    """Explicit configuration handed to the test runner for one run."""

    store_url: str | None = DEFAULT_STORE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    store_timeout: float = DEFAULT_STORE_TIMEOUT
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from OAS_EVALUATOR_* variables, falling back to defaults."""
        return cls(
            store_url=os.getenv("OAS_EVALUATOR_STORE_URL", DEFAULT_STORE_URL) or None,
            request_timeout=float(os.getenv("OAS_EVALUATOR_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
            store_timeout=float(os.getenv("OAS_EVALUATOR_STORE_TIMEOUT", DEFAULT_STORE_TIMEOUT)),
            log_level=os.getenv("OAS_EVALUATOR_LOG_LEVEL", "WARNING"),
        )
