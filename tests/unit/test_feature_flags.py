import pytest

from innerview.utils.feature_flags import (
    FeatureFlagKey,
    get_feature_flags,
    is_feature_enabled,
    lti_enabled,
    refresh_feature_flag_cache,
)

_ENV_FLAG_MAPPING = {
    "FEATURE_WEBHOOKS_ENABLED": "webhooks_enabled",
    "FEATURE_LTI_ENABLED": "lti_enabled",
    "FEATURE_LMS_SYNC_ENABLED": "lms_sync_enabled",
    "FEATURE_EMAIL_NOTIFICATIONS_ENABLED": "email_notifications_enabled",
}


@pytest.fixture(autouse=True)
def reset_flags(monkeypatch):
    """Clear env + cached values for each test to avoid cross-contamination."""
    for env_name in _ENV_FLAG_MAPPING:
        monkeypatch.delenv(env_name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


def test_get_feature_flags_defaults_true():
    assert get_feature_flags() == {
        "webhooks_enabled": True,
        "lti_enabled": True,
        "lms_sync_enabled": True,
        "email_notifications_enabled": True,
    }


@pytest.mark.parametrize("env_name,flag_key", list(_ENV_FLAG_MAPPING.items()))
def test_individual_flag_disabled_via_env(monkeypatch, env_name: str, flag_key: FeatureFlagKey):
    monkeypatch.setenv(env_name, "off")
    refresh_feature_flag_cache()

    assert get_feature_flags()[flag_key] is False
    assert is_feature_enabled(flag_key) is False


@pytest.mark.parametrize("raw_value", ["maybe", "junk", "2"])
def test_invalid_value_falls_back_to_default(monkeypatch, raw_value):
    monkeypatch.setenv("FEATURE_LTI_ENABLED", raw_value)
    refresh_feature_flag_cache()

    assert lti_enabled() is True


def test_refresh_feature_flag_cache_forces_reload(monkeypatch):
    monkeypatch.setenv("FEATURE_LTI_ENABLED", "false")
    refresh_feature_flag_cache()
    assert lti_enabled() is False

    # Stale until the cache is cleared
    monkeypatch.setenv("FEATURE_LTI_ENABLED", "true")
    assert lti_enabled() is False

    refresh_feature_flag_cache()
    assert lti_enabled() is True
