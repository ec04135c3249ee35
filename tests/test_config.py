"""Tests for config loading, validation, and env var overrides."""

from pathlib import Path

import pytest

from pkgdiff.config.defaults import DEFAULT_TOML
from pkgdiff.config.loader import ConfigError, load_config


class TestConfigLoading:
    def test_default_config(self, tmp_path: Path):
        cfg = load_config(tmp_path)
        assert cfg.diff.similarity_threshold == 0.5
        assert cfg.diff.basename_boost == 1.2
        assert cfg.sources.timeout == 30.0
        assert cfg.output.format == "terminal"

    def test_starter_template_loads(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text(DEFAULT_TOML)
        cfg = load_config(tmp_path)
        assert cfg.diff.similarity_threshold == 0.5
        assert cfg.output.show_unchanged is False

    def test_custom_toml(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text(
            'version = "1.0"\n'
            '[diff]\n'
            'similarity_threshold = 0.7\n'
            '[sources]\n'
            'npm_registry = "https://npm.internal"\n'
            'unknown_key = true\n'
        )
        cfg = load_config(tmp_path)
        assert cfg.diff.similarity_threshold == 0.7
        assert cfg.sources.npm_registry == "https://npm.internal"

    def test_found_in_parent_directory(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[sources]\ntimeout = 3.0\n')
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert load_config(nested).sources.timeout == 3.0

    def test_config_override_path(self, tmp_path: Path):
        custom = tmp_path / "custom.toml"
        custom.write_text('[output]\nformat = "json"\n')
        cfg = load_config(tmp_path, config_override=str(custom))
        assert cfg.output.format == "json"

    def test_missing_override_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_config(tmp_path, config_override="/nonexistent/config.toml")

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text("this is not valid [toml")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('diff = "fast"\n')
        with pytest.raises(ConfigError, match=r"\[diff\]"):
            load_config(tmp_path)

    def test_non_numeric_threshold_raises(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[diff]\nsimilarity_threshold = "high"\n')
        with pytest.raises(ConfigError, match="similarity_threshold"):
            load_config(tmp_path)

    def test_bool_is_not_a_number(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[sources]\ntimeout = true\n')
        with pytest.raises(ConfigError, match="timeout"):
            load_config(tmp_path)

    def test_string_field_type_checked(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[output]\nshow_unchanged = "yes"\n')
        with pytest.raises(ConfigError, match="show_unchanged"):
            load_config(tmp_path)

    def test_integer_accepted_for_float(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[sources]\ntimeout = 10\n[diff]\nbasename_boost = 2\n')
        cfg = load_config(tmp_path)
        assert cfg.sources.timeout == 10.0
        assert isinstance(cfg.diff.basename_boost, float)

    def test_threshold_out_of_range_raises(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[diff]\nsimilarity_threshold = 1.5\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_format_raises(self, tmp_path: Path):
        (tmp_path / ".pkgdiff.toml").write_text('[output]\nformat = "sarif"\n')
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestEnvVarOverrides:
    def test_format_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PKGDIFF_FORMAT", "json")
        assert load_config(tmp_path).output.format == "json"

    def test_timeout_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PKGDIFF_TIMEOUT", "5")
        assert load_config(tmp_path).sources.timeout == 5.0

    def test_threshold_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PKGDIFF_SIMILARITY_THRESHOLD", "0.9")
        assert load_config(tmp_path).diff.similarity_threshold == 0.9

    def test_invalid_env_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PKGDIFF_FORMAT", "xml")
        monkeypatch.setenv("PKGDIFF_TIMEOUT", "soon")
        monkeypatch.setenv("PKGDIFF_SIMILARITY_THRESHOLD", "2")
        cfg = load_config(tmp_path)
        assert cfg.output.format == "terminal"  # default unchanged
        assert cfg.sources.timeout == 30.0
        assert cfg.diff.similarity_threshold == 0.5
