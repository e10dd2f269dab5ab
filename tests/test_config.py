"""
Tests for settings loading.

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|---------------------|---------------------------------------|-----------------|-------|
| TC-N-01 | Repository settings.yaml | Equivalence – normal | Documented defaults | - |
| TC-N-02 | PARTSCOUT_RATE_LIMIT__LIMIT=5 | Equivalence – normal | limit == 5 (int) | - |
| TC-N-03 | local.yaml settings section | Equivalence – normal | Merged over settings.yaml | - |
| TC-B-01 | Empty config dir | Boundary – empty | Model defaults | - |
| TC-A-01 | limit=0 | Equivalence – abnormal | ValidationError | - |
| TC-N-04 | deep_merge nested | Equivalence – normal | Nested keys merged | - |
| TC-N-05 | .env file | Equivalence – normal | Fills gaps only | - |
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from partscout.utils.config import deep_merge, get_settings
from partscout.utils.dotenv import load_dotenv_if_present

pytestmark = pytest.mark.unit


def test_repository_defaults() -> None:
    """Test TC-N-01: Given the shipped settings.yaml, Then the documented defaults load."""
    settings = get_settings()

    assert settings.rate_limit.limit == 60
    assert settings.rate_limit.window_seconds == 60
    assert settings.browser.idle_timeout_seconds == 180
    assert settings.browser.navigation_timeout_seconds == 30
    assert settings.browser.wait_until == "networkidle"
    assert settings.site.base_url == "https://www.partselect.com"
    assert settings.fallback_search.enabled is True
    # conftest sets PARTSCOUT_GENERAL__LOG_LEVEL
    assert settings.general.log_level == "DEBUG"


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test TC-N-02: Given an env override, When settings reload, Then it wins and is typed."""
    monkeypatch.setenv("PARTSCOUT_RATE_LIMIT__LIMIT", "5")
    monkeypatch.setenv("PARTSCOUT_FALLBACK_SEARCH__ENABLED", "false")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.rate_limit.limit == 5
    assert settings.fallback_search.enabled is False


def test_local_yaml_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test TC-N-03: Given local.yaml with a settings section, Then it is merged over settings.yaml."""
    (tmp_path / "settings.yaml").write_text(
        "browser:\n  headless: true\n  idle_timeout_seconds: 180\n", encoding="utf-8"
    )
    (tmp_path / "local.yaml").write_text(
        "settings:\n  browser:\n    headless: false\n", encoding="utf-8"
    )
    monkeypatch.setenv("PARTSCOUT_CONFIG_DIR", str(tmp_path))
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.browser.headless is False
    assert settings.browser.idle_timeout_seconds == 180


def test_empty_config_dir_uses_model_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test TC-B-01."""
    monkeypatch.setenv("PARTSCOUT_CONFIG_DIR", str(tmp_path))
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.rate_limit.limit == 60
    assert settings.extraction.rules_file == "extraction_rules.yaml"


def test_invalid_limit_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test TC-A-01: Given limit=0, When settings load, Then validation fails."""
    monkeypatch.setenv("PARTSCOUT_RATE_LIMIT__LIMIT", "0")
    get_settings.cache_clear()

    with pytest.raises(ValidationError):
        get_settings()


def test_deep_merge() -> None:
    """Test TC-N-04: Given nested dicts, Then nested keys merge and lists are replaced."""
    base = {"browser": {"headless": True, "launch_args": ["--a"]}, "site": {"base_url": "x"}}
    override = {"browser": {"launch_args": ["--b"]}}

    merged = deep_merge(base, override)

    assert merged == {
        "browser": {"headless": True, "launch_args": ["--b"]},
        "site": {"base_url": "x"},
    }
    assert base["browser"]["launch_args"] == ["--a"]


def test_dotenv_fills_gaps_only(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test TC-N-05: Given a .env file, Then unset keys load and set keys are kept."""
    monkeypatch.setenv("PARTSCOUT_TEST_KEPT", "from-env")
    monkeypatch.delenv("PARTSCOUT_TEST_NEW", raising=False)
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "# comment\nexport PARTSCOUT_TEST_NEW='from-file'\nPARTSCOUT_TEST_KEPT=from-file\n",
        encoding="utf-8",
    )

    try:
        assert load_dotenv_if_present(dotenv_path=dotenv) is True
        assert os.environ["PARTSCOUT_TEST_NEW"] == "from-file"
        assert os.environ["PARTSCOUT_TEST_KEPT"] == "from-env"
    finally:
        os.environ.pop("PARTSCOUT_TEST_NEW", None)
