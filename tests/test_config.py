import pytest

from counselor.config import Config


def test_defaults_validate(monkeypatch):
    for name in ("GRADE_SCALE", "THRESHOLD_LADDER", "STORE_BACKEND", "MAX_TERM_CREDITS"):
        monkeypatch.delenv(name, raising=False)
    config = Config()
    config.validate()
    assert config.planner.max_term_credits == 18
    assert config.to_dict()["store_backend"] == "memory"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GRADE_SCALE", "NO_D_MINUS")
    monkeypatch.setenv("MAX_TERM_CREDITS", "21")
    config = Config()
    config.validate()
    assert config.planner.grade_scale == "no_d_minus"
    assert config.planner.max_term_credits == 21


@pytest.mark.parametrize("name, value", [
    ("GRADE_SCALE", "pass_fail"),
    ("STORE_BACKEND", "sqlite"),
    ("MAX_TERM_CREDITS", "0"),
])
def test_invalid_settings(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match="Invalid configuration"):
        Config().validate()
