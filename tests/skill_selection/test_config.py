import pytest

from skill_context_engine.config import SelectionConfig


class TestSelectionConfig:
    def test_default_values(self):
        config = SelectionConfig()

        assert config.min_score == 0.05
        assert config.mutual_exclusion_overlap == 0.6
        assert config.priority_preempt == 100
        assert config.min_fragment_size == 200
        assert config.tag_boost == 0.1
        assert config.size_unit == "chars"
        assert config.chars_per_token == 4

    def test_custom_values(self):
        config = SelectionConfig(
            min_score=0.2,
            mutual_exclusion_overlap=0.8,
            priority_preempt=10,
            min_fragment_size=50,
            size_unit="tokens",
        )

        assert config.min_score == 0.2
        assert config.mutual_exclusion_overlap == 0.8
        assert config.priority_preempt == 10
        assert config.min_fragment_size == 50
        assert config.size_unit == "tokens"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_score": -0.1},
            {"min_score": 1.5},
            {"mutual_exclusion_overlap": 0.0},
            {"min_fragment_size": -1},
            {"tag_boost": 2.0},
            {"size_unit": "bytes"},
            {"chars_per_token": 0},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            SelectionConfig(**kwargs)


class TestSelectionConfigFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SKILL_ENGINE_MIN_SCORE", "0.25")
        monkeypatch.setenv("SKILL_ENGINE_PRIORITY_PREEMPT", "50")
        monkeypatch.setenv("SKILL_ENGINE_SIZE_UNIT", "tokens")

        config = SelectionConfig.from_env()

        assert config.min_score == 0.25
        assert config.priority_preempt == 50
        assert config.size_unit == "tokens"
        assert config.min_fragment_size == 200

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SKILL_ENGINE_MIN_FRAGMENT_SIZE", "10")

        config = SelectionConfig.from_env(min_fragment_size=75)

        assert config.min_fragment_size == 75

    def test_custom_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MYHOST_MUTUAL_EXCLUSION_OVERLAP", "0.9")

        config = SelectionConfig.from_env(prefix="MYHOST_")

        assert config.mutual_exclusion_overlap == 0.9

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SKILL_ENGINE_MIN_SCORE", "7")

        with pytest.raises(ValueError):
            SelectionConfig.from_env()
