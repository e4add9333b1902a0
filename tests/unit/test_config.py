"""Tests for modgate.core.config."""

from pathlib import Path

import pytest

from modgate.core.config import (
    CONFIG_KEY_MAP,
    ConfigValidationError,
    generate_config,
    get_all_config_values,
    get_config_dir,
    get_config_value,
    get_default_config_path,
    load_settings,
    load_settings_or_default,
    save_settings,
    set_config_value,
)
from modgate.core.models import RateLimitSettings


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Return a generated default config.toml."""
    return generate_config(path=tmp_path / "config.toml")


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_uses_xdg_config_home_when_set(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """get_config_dir uses XDG_CONFIG_HOME when set."""
        # Arrange
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        # Act
        result = get_config_dir()

        # Assert
        assert result == tmp_path / "modgate"

    def test_uses_default_when_xdg_config_home_not_set(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """get_config_dir uses ~/.config/modgate when XDG_CONFIG_HOME not set."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

        assert get_config_dir() == Path.home() / ".config" / "modgate"

    def test_uses_default_when_xdg_config_home_whitespace(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """get_config_dir uses default when XDG_CONFIG_HOME is whitespace."""
        monkeypatch.setenv("XDG_CONFIG_HOME", "   ")

        assert get_config_dir() == Path.home() / ".config" / "modgate"

    def test_default_config_path(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """config.toml lives in the config directory."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_default_config_path() == tmp_path / "modgate" / "config.toml"


class TestGenerateConfig:
    """Tests for generate_config function."""

    def test_writes_default_settings(self, tmp_path: Path) -> None:
        """Generated file loads back as default settings."""
        # Arrange
        path = tmp_path / "nested" / "config.toml"

        # Act
        result = generate_config(path=path)

        # Assert
        assert result == path
        assert load_settings(path) == RateLimitSettings()

    def test_contains_sections(self, config_path: Path) -> None:
        """Generated file has ratelimit and http tables."""
        content = config_path.read_text()

        assert "[ratelimit]" in content
        assert "max_retries = 50" in content
        assert "[http]" in content
        assert "# max_delay = 30.0" in content

    def test_refuses_to_overwrite(self, config_path: Path) -> None:
        """Existing file raises FileExistsError without force."""
        with pytest.raises(FileExistsError):
            generate_config(path=config_path)

    def test_force_overwrites(self, config_path: Path) -> None:
        """force=True replaces an existing file."""
        config_path.write_text("[ratelimit]\nmax_retries = 3\n")

        generate_config(path=config_path, force=True)

        assert load_settings(config_path).max_retries == 50


class TestLoadSettings:
    """Tests for load_settings function."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.toml")

    def test_partial_file_uses_defaults(self, tmp_path: Path) -> None:
        """Unset fields keep their defaults."""
        # Arrange
        path = tmp_path / "config.toml"
        path.write_text("[ratelimit]\nmax_retries = 10\n\n[http]\ntimeout = 5.0\n")

        # Act
        settings = load_settings(path)

        # Assert
        assert settings.max_retries == 10
        assert settings.timeout == 5.0
        assert settings.base_delay == 0.1

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigValidationError."""
        path = tmp_path / "config.toml"
        path.write_text("[ratelimit\nmax_retries = ")

        with pytest.raises(ConfigValidationError, match="Invalid TOML"):
            load_settings(path)

    def test_invalid_value_raises_with_errors(self, tmp_path: Path) -> None:
        """Out-of-range values raise ConfigValidationError listing the field."""
        # Arrange
        path = tmp_path / "config.toml"
        path.write_text("[ratelimit]\nmax_retries = -1\n")

        # Act
        with pytest.raises(ConfigValidationError) as exc_info:
            load_settings(path)

        # Assert
        assert [e.field for e in exc_info.value.errors] == ["max_retries"]

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        """load_settings_or_default falls back to defaults."""
        assert load_settings_or_default(tmp_path / "missing.toml") == (
            RateLimitSettings()
        )

    def test_or_default_still_validates(self, tmp_path: Path) -> None:
        """load_settings_or_default does not hide invalid files."""
        path = tmp_path / "config.toml"
        path.write_text("[http]\nmax_concurrent = 0\n")

        with pytest.raises(ConfigValidationError):
            load_settings_or_default(path)


class TestSaveSettings:
    """Tests for save_settings function."""

    def test_round_trips_max_delay(self, tmp_path: Path) -> None:
        """A configured max_delay is written as a real key."""
        # Arrange
        path = tmp_path / "config.toml"
        settings = RateLimitSettings(max_retries=5, max_delay=2.5)

        # Act
        save_settings(settings, path)

        # Assert
        assert load_settings(path) == settings


class TestConfigValues:
    """Tests for get/set of individual config values."""

    def test_get_value(self, config_path: Path) -> None:
        """get_config_value reads a dot-notation key."""
        assert get_config_value("ratelimit.max_retries", config_path) == 50
        assert get_config_value("http.timeout", config_path) == 30.0

    def test_get_unset_value_is_none(self, config_path: Path) -> None:
        """Commented-out keys read as None."""
        assert get_config_value("ratelimit.max_delay", config_path) is None

    def test_get_unknown_key_raises(self, config_path: Path) -> None:
        """Unknown keys raise ValueError."""
        with pytest.raises(ValueError, match="Unknown config key"):
            get_config_value("ratelimit.nope", config_path)

    def test_get_all_values(self, config_path: Path) -> None:
        """get_all_config_values lists every known key."""
        values = get_all_config_values(config_path)

        assert set(values) == set(CONFIG_KEY_MAP)
        assert values["http.max_concurrent"] == 8
        assert values["ratelimit.max_delay"] is None

    def test_set_value_coerces_type(self, config_path: Path) -> None:
        """set_config_value stores typed values."""
        # Act
        set_config_value("ratelimit.max_retries", "20", config_path)
        set_config_value("ratelimit.max_delay", "30", config_path)

        # Assert
        settings = load_settings(config_path)
        assert settings.max_retries == 20
        assert settings.max_delay == 30.0

    def test_set_value_keeps_comments(self, tmp_path: Path) -> None:
        """Editing preserves user comments."""
        path = tmp_path / "config.toml"
        path.write_text("# my limits\n[ratelimit]\nmax_retries = 5\n")

        set_config_value("ratelimit.max_retries", "7", path)

        content = path.read_text()
        assert "# my limits" in content
        assert "max_retries = 7" in content

    def test_set_value_adds_missing_section(self, tmp_path: Path) -> None:
        """A missing section is created."""
        path = tmp_path / "config.toml"
        path.write_text("[ratelimit]\nmax_retries = 5\n")

        set_config_value("http.timeout", "12.5", path)

        assert load_settings(path).timeout == 12.5

    def test_set_value_rejects_wrong_type(self, config_path: Path) -> None:
        """Non-numeric input raises ValueError."""
        with pytest.raises(ValueError, match="expected int"):
            set_config_value("ratelimit.max_retries", "many", config_path)

    def test_set_value_rejects_out_of_range(self, config_path: Path) -> None:
        """Values that fail validation are not written."""
        with pytest.raises(ValueError, match="ratelimit.max_retries"):
            set_config_value("ratelimit.max_retries", "-3", config_path)

        assert load_settings(config_path).max_retries == 50

    def test_set_value_unknown_key(self, config_path: Path) -> None:
        """Unknown keys raise ValueError."""
        with pytest.raises(ValueError, match="Unknown config key"):
            set_config_value("foo.bar", "1", config_path)

    def test_set_value_missing_file(self, tmp_path: Path) -> None:
        """Missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            set_config_value("http.timeout", "1", tmp_path / "missing.toml")
