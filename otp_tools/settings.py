import os
from typing import Mapping
from pydantic import BaseModel, PositiveInt, PositiveFloat, ValidationError
from otp_tools.errors import ConfigError


ENVIRONMENT_VARIABLES = {
    "refresh_limit": "OTP_TOOLS_REFRESH_LIMIT",
    "tick_seconds": "OTP_TOOLS_TICK_SECONDS",
}


class SessionSettings(BaseModel):
    """
    Tunables of the interactive session
    """
    refresh_limit: PositiveInt = 3
    tick_seconds: PositiveFloat = 1.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SessionSettings":
        """
        Build the settings, overriding defaults with the environment variables that are set
        """
        environ = os.environ if environ is None else environ
        values = {field: environ[variable] for field, variable in ENVIRONMENT_VARIABLES.items() if environ.get(variable)}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid session settings in environment: {e}") from e
