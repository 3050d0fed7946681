"""
This module manages authentication configuration for the catalog service.
It resolves the API key sent in the ``moi-key`` header from direct input or the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_API_KEY = "MATRIXFLOW_API_KEY"
API_KEY_HEADER = "moi-key"


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Configuration container for catalog service credentials.
    Ensures the API key is present and provides a centralized access point.
    """

    api_key: str

    @staticmethod
    def from_env_or_value(api_key: str | None) -> AuthConfig:
        """
        Create an AuthConfig instance from a provided value or environment variable.

        Args:
            api_key: Optional API key string provided by the user.

        Returns:
            An initialized AuthConfig instance containing the trimmed API key.

        Raises:
            ValueError: If no API key is found in both the argument and environment.
        """
        key = (api_key or os.getenv(ENV_API_KEY) or "").strip()

        if not key:
            raise ValueError(
                "API key missing. Define MATRIXFLOW_API_KEY in environment or pass api_key value"
            )
        return AuthConfig(api_key=key)

    def headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self.api_key}
