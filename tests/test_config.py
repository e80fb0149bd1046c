"""Tests for option merging and the run configuration."""

import dataclasses
import logging
import math
import re

import pytest

from asset_uploader.utils.config import (
    StoreOptions,
    UploadConfiguration,
    UploadOptions,
    build_configuration,
    merge_options,
    normalize_retry_limit,
)


class TestDefaults:
    """Test the configuration built from no options."""

    def test_plugin_defaults(self):
        """Test defaults match the option table."""
        config = build_configuration()

        assert config.key_prefix == "/"
        assert config.retry_limit == 3
        assert config.max_attempts == 4
        assert config.existence_check_enabled is True
        assert config.remove_after_upload is False
        assert config.compress_before_upload is False
        assert config.suppress_errors is False
        assert config.logging_enabled is False
        assert config.exclude_pattern.pattern == r".*\.html$"
        assert config.include_pattern.pattern == r".*"
        assert config.bucket == ""

    def test_configuration_is_immutable(self):
        """Test the configuration cannot be changed after construction."""
        config = build_configuration()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.retry_limit = 9


class TestMerge:
    """Test merging user options over defaults."""

    def test_key_prefix_joins_base_dir_and_project(self):
        """Test cosBaseDir and project form the prefix."""
        config = build_configuration({"cosBaseDir": "static", "project": "app"})

        assert config.key_prefix == "static/app"

    def test_scalars_replace_defaults(self):
        """Test flags and patterns override outright."""
        config = build_configuration(
            {
                "exclude": r"\.map$",
                "include": re.compile(r"^assets/"),
                "existCheck": False,
                "gzip": True,
                "removeMode": True,
                "ignoreError": True,
                "enableLog": True,
            }
        )

        assert config.exclude_pattern.pattern == r"\.map$"
        assert config.include_pattern.pattern == r"^assets/"
        assert config.existence_check_enabled is False
        assert config.compress_before_upload is True
        assert config.remove_after_upload is True
        assert config.suppress_errors is True
        assert config.logging_enabled is True

    def test_store_options_merge_key_by_key(self):
        """Test cosOptions and its Headers merge into the defaults."""
        defaults = UploadOptions(
            cos_options=StoreOptions(
                bucket="default-bucket",
                region="us-east1",
                headers={"Cache-Control": "no-cache"},
            )
        )

        config = build_configuration(
            {"cosOptions": {"Bucket": "site-assets", "Headers": {"Content-Encoding": "gzip"}}},
            defaults=defaults,
        )

        assert config.bucket == "site-assets"
        assert config.region == "us-east1"
        assert config.store_options.headers == {
            "Cache-Control": "no-cache",
            "Content-Encoding": "gzip",
        }

    def test_defaults_are_not_mutated(self):
        """Test merging leaves the defaults untouched."""
        defaults = UploadOptions(cos_options=StoreOptions(headers={"A": "1"}))

        merge_options(defaults, {"retry": 0, "cosOptions": {"Headers": {"B": "2"}}})

        assert defaults.retry == 3
        assert defaults.cos_options.headers == {"A": "1"}

    def test_unknown_options_are_ignored_with_warning(self, caplog):
        """Test unknown keys log a warning and change nothing."""
        caplog.set_level(logging.WARNING)

        config = build_configuration({"retires": 5, "cosOptions": {"SecretKey": "x"}})

        assert config.retry_limit == 3
        messages = [r.getMessage() for r in caplog.records]
        assert any("Ignoring unknown option: retires" in m for m in messages)
        assert any("Ignoring unknown cosOptions key: SecretKey" in m for m in messages)

    def test_invalid_pattern_raises(self):
        """Test a broken regular expression fails at build time."""
        with pytest.raises(re.error):
            build_configuration({"exclude": "("})


class TestRetryNormalization:
    """Test normalize_retry_limit."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5),
            (0, 0),
            (-1, 0),
            ("3", 0),
            (None, 0),
            (True, 0),
            (2.5, 3),
            (math.nan, 0),
            (math.inf, 0),
        ],
    )
    def test_values(self, value, expected):
        """Test negative and non-numeric values become 0."""
        assert normalize_retry_limit(value) == expected

    def test_configuration_normalizes_on_construction(self):
        """Test a directly built configuration is normalized too."""
        assert UploadConfiguration(retry_limit=-7).retry_limit == 0
        assert build_configuration({"retry": "many"}).max_attempts == 1


class TestStoreOptionsFromEnv:
    """Test StoreOptions.from_env."""

    def test_reads_environment(self, monkeypatch, tmp_path):
        """Test store options come from environment variables."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GCS_BUCKET", "env-bucket")
        monkeypatch.setenv("GCS_REGION", "europe-west1")
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "web")
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)

        options = StoreOptions.from_env()

        assert options.bucket == "env-bucket"
        assert options.region == "europe-west1"
        assert options.project == "web"
        assert options.credentials_path is None

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        """Test a .env file in the working directory is loaded."""
        monkeypatch.chdir(tmp_path)
        # setenv first so teardown restores the original value
        monkeypatch.setenv("GCS_BUCKET", "placeholder")
        monkeypatch.delenv("GCS_BUCKET")
        (tmp_path / ".env").write_text("GCS_BUCKET=dotenv-bucket\n")

        options = StoreOptions.from_env()

        assert options.bucket == "dotenv-bucket"
