from innerview.utils.urls import (
    _add_scheme_if_missing,
    _strip_trailing_slash,
    build_app_link,
    get_app_base_url,
    with_query,
)


def test_add_scheme_if_missing_variants():
    assert _add_scheme_if_missing("https://example.com") == "https://example.com"
    assert _add_scheme_if_missing("localhost:3000") == "http://localhost:3000"
    assert _add_scheme_if_missing("example.com") == "https://example.com"
    assert _add_scheme_if_missing("") == "http://localhost:3000"


def test_strip_trailing_slash():
    assert _strip_trailing_slash("https://x/") == "https://x"
    assert _strip_trailing_slash("https://x") == "https://x"


def test_get_app_base_url_env_precedence(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://rti.school.test/")
    monkeypatch.setenv("APP_HOST", "ignored.test")
    assert get_app_base_url() == "https://rti.school.test"

    monkeypatch.delenv("APP_BASE_URL")
    assert get_app_base_url() == "https://ignored.test"

    monkeypatch.delenv("APP_HOST")
    assert get_app_base_url() == "http://localhost:3000"


def test_build_app_link_and_query(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://rti.school.test")
    assert build_app_link("/referrals/1") == "https://rti.school.test/referrals/1"
    assert with_query("https://x/cb", {"state": "abc", "hint": None}) == "https://x/cb?state=abc"
    assert with_query("https://x/cb?a=1", {"b": 2}) == "https://x/cb?a=1&b=2"
    assert with_query("https://x/cb", {}) == "https://x/cb"
