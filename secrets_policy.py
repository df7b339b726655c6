"""secrets_policy.py

Which settings are secrets, and how to keep them out of logs and files.

The weather API key is the only server-side secret. AI provider keys are
submitted at runtime by users and never enter the settings dict.
"""

from __future__ import annotations

from typing import Any, Dict


# Top-level settings keys treated as secrets.
SECRET_SETTING_KEYS = {
    "weather_api_key",
    "openweather_api_key",
}


def is_secret_key(key: str) -> bool:
    k = str(key).lower()
    return k in SECRET_SETTING_KEYS or k.endswith("_api_key") or k.endswith("_secret")


def scrub_secrets(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of settings with secret keys removed."""
    return {k: v for k, v in settings.items() if not is_secret_key(k)}


def redact_secrets(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of settings with secret values masked, for logging."""
    out = dict(settings)
    for k, v in out.items():
        if is_secret_key(k):
            out[k] = "***" if v else ""
    return out
