"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "webhooks_enabled",
    "lti_enabled",
    "lms_sync_enabled",
    "email_notifications_enabled",
]


class FeatureFlagValues(TypedDict):
    webhooks_enabled: bool
    lti_enabled: bool
    lms_sync_enabled: bool
    email_notifications_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "webhooks_enabled": FeatureFlagDefinition("FEATURE_WEBHOOKS_ENABLED", True),
    "lti_enabled": FeatureFlagDefinition("FEATURE_LTI_ENABLED", True),
    "lms_sync_enabled": FeatureFlagDefinition("FEATURE_LMS_SYNC_ENABLED", True),
    "email_notifications_enabled": FeatureFlagDefinition("FEATURE_EMAIL_NOTIFICATIONS_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def webhooks_enabled() -> bool:
    """Toggle outbound webhook dispatch for domain events."""
    return is_feature_enabled("webhooks_enabled")


def lti_enabled() -> bool:
    """Toggle the public LTI login and launch endpoints."""
    return is_feature_enabled("lti_enabled")


def lms_sync_enabled() -> bool:
    """Toggle Google Classroom and Microsoft Teams roster sync."""
    return is_feature_enabled("lms_sync_enabled")


def email_notifications_enabled() -> bool:
    return is_feature_enabled("email_notifications_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
