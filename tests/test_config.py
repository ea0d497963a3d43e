import pytest

from core.config import AppSettings, PollingPolicy, write_user_env_vars
from core.domain.language import Language


def test_default_policy_matches_service_cadence():
    policy = PollingPolicy.from_settings(AppSettings(_env_file=None))

    assert policy.initial_interval == 5
    assert policy.running_interval == 10
    assert policy.max_wait == 15 * 60


def test_policy_reads_environment(monkeypatch):
    monkeypatch.setenv("TLS_ASSESS_POLL_INITIAL_SECONDS", "0.5")
    monkeypatch.setenv("TLS_ASSESS_POLL_RUNNING_SECONDS", "1.5")
    monkeypatch.setenv("TLS_ASSESS_MAX_WAIT_SECONDS", "30")

    policy = PollingPolicy.from_settings(AppSettings(_env_file=None))

    assert policy == PollingPolicy(initial_interval=0.5, running_interval=1.5, max_wait=30)


def test_settings_reject_non_positive_intervals(monkeypatch):
    monkeypatch.setenv("TLS_ASSESS_POLL_INITIAL_SECONDS", "0")

    with pytest.raises(ValueError):
        AppSettings(_env_file=None)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"initial_interval": 10, "running_interval": 5},
        {"max_wait": 0},
        {"initial_interval": -1},
    ],
)
def test_policy_rejects_inconsistent_values(kwargs):
    with pytest.raises(ValueError):
        PollingPolicy(**kwargs)


def test_log_level_falls_back_to_warning():
    assert AppSettings(_env_file=None, log_level="debug").resolved_log_level() == 10
    assert AppSettings(_env_file=None, log_level="chatty").resolved_log_level() == 30


def test_write_user_env_vars_merges_existing(tmp_path):
    env_path = tmp_path / "cfg" / ".env"
    write_user_env_vars({"TLS_ASSESS_MAX_WAIT_SECONDS": "60"}, env_path=env_path)
    write_user_env_vars({"TLS_ASSESS_POLL_INITIAL_SECONDS": "2"}, env_path=env_path)

    text = env_path.read_text(encoding="utf-8")

    assert "TLS_ASSESS_MAX_WAIT_SECONDS=60" in text
    assert "TLS_ASSESS_POLL_INITIAL_SECONDS=2" in text


@pytest.mark.parametrize(
    ("value", "expected"),
    [("es", Language.SPANISH), ("Spanish", Language.SPANISH), ("EN", Language.ENGLISH), (None, Language.ENGLISH)],
)
def test_language_parse(value, expected):
    assert Language.parse(value) is expected


def test_language_parse_unknown_uses_default():
    assert Language.parse("fr", default=Language.SPANISH) is Language.SPANISH
