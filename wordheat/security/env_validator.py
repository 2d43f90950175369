"""
Environment Checks

The oracle, Redis and JWT settings must be present before the service
handles requests. The tunables in config.py may be overridden from the
environment; a malformed override is reported but never fatal.
"""

import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple


@dataclass
class EnvSetting:
    name: str
    required: bool = True
    check: Optional[Callable[[str], bool]] = None
    problem: str = "validation failed"

    def error(self) -> Optional[str]:
        """Why the current value is unusable, or None if it is fine."""
        value = (os.getenv(self.name) or "").strip()
        if not value:
            return f"Missing required environment variable: {self.name}" if self.required else None
        if self.check and not self.check(value):
            return f"Invalid value for {self.name}: {self.problem}"
        return None


SETTINGS: List[EnvSetting] = [
    EnvSetting("OPENAI_API_KEY"),
    EnvSetting("UPSTASH_REDIS_REST_URL", check=lambda v: v.startswith("https://"), problem="must be an https URL"),
    EnvSetting("UPSTASH_REDIS_REST_TOKEN"),
    EnvSetting("JWT_SECRET", check=lambda v: len(v) >= 32, problem="use at least 32 characters"),
    EnvSetting("WORDHEAT_BLITZ_SECONDS", required=False,
               check=lambda v: v.isdigit() and int(v) > 0, problem="must be a positive number of seconds"),
]


def validate_required_env_vars(strict: bool = True) -> Tuple[bool, List[str]]:
    """
    Check every setting and log what is wrong with it.

    Missing or invalid required settings are errors; in production with
    ``strict`` they raise RuntimeError. Problems with optional overrides
    are only logged.
    """
    production = os.getenv('VERCEL_ENV') == 'production'
    errors: List[str] = []
    failing: List[str] = []
    for setting in SETTINGS:
        error = setting.error()
        if not error:
            continue
        if not setting.required:
            print(f"[SECURITY] [OPTIONAL] {error}")
        elif strict or production:
            errors.append(error)
            failing.append(setting.name)
            print(f"[SECURITY ERROR] {error}")
        else:
            print(f"[SECURITY] [DEV WARNING] {error}")

    if errors and strict and production:
        raise RuntimeError(f"Environment is not configured: {', '.join(failing)}")
    return not errors, errors
