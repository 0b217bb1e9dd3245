"""Test suite for configuration, store construction and CLI commands.

This test suite validates:
- Preferences module functionality
- Config loader functionality and validation
- Building stores from configuration
- CLI commands for config and secret management
"""
import json
import os
from argparse import Namespace
from pathlib import Path

import pytest
import yaml

from secretstore.cli import main as cli
from secretstore.storage.domains import config_loader
from secretstore.storage.domains import preferences
from secretstore.storage.domains.config_loader import ConfigError
from secretstore.storage.domains.errors import InvalidConfigurationError
from secretstore.storage.domains.gcp_client import GCPSecretClient
from secretstore.storage.workflows import store_factory
from secretstore.storage.workflows.remote_store import RemoteSecretStore
from secretstore.storage.workflows.volatile_store import VolatileStore


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "secretstore"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")
    monkeypatch.delenv("GCP_PROJECT", raising=False)
    # build_store sets this directly; register it so teardown restores it
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "")
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS")

    return fake_home


@pytest.fixture
def temp_config_dir(temp_home):
    config_dir = temp_home / ".config" / "secretstore"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def service_account_file(tmp_path):
    sa_file = tmp_path / "test-sa.json"
    sa_file.write_text(json.dumps({"type": "service_account"}))
    return sa_file


@pytest.fixture
def gcp_config_content(service_account_file):
    """Sample valid gcp backend config."""
    return {
        "storage": {
            "backend": "gcp",
            "prefix": "app/prod"
        },
        "authentication": {
            "type": "service_account",
            "service_account_path": str(service_account_file)
        },
        "gcp": {
            "project_id": "test-project"
        }
    }


def write_config(path, content):
    with open(path, 'w') as f:
        yaml.dump(content, f)
    return path


@pytest.fixture
def temp_config_file(temp_config_dir, gcp_config_content):
    """Valid gcp config at the default location."""
    return write_config(temp_config_dir / "config.yml", gcp_config_content)


class TestPreferencesModule:
    """Test suite for preferences module."""

    def test_get_preference_returns_none_when_not_set(self, temp_home):
        assert preferences.get_preference("config_path") is None

    def test_set_preference_stores_value(self, temp_home):
        preferences.set_preference("config_path", "/path/to/config.yml")
        assert preferences.get_preference("config_path") == "/path/to/config.yml"

    def test_clear_preference_removes_value(self, temp_home):
        preferences.set_preference("config_path", "/path/to/config.yml")
        preferences.clear_preference("config_path")
        assert preferences.get_preference("config_path") is None

    def test_preferences_persisted_to_json_file(self, temp_home):
        preferences.set_preference("config_path", "/path/to/config.yml")

        with open(preferences.PREFERENCES_FILE, 'r') as f:
            data = json.load(f)

        assert data["config_path"] == "/path/to/config.yml"

    def test_corrupt_preferences_file_ignored(self, temp_config_dir):
        preferences.PREFERENCES_FILE.write_text("{not json")
        assert preferences.get_preference("config_path") is None

    def test_clear_nonexistent_preference(self, temp_home):
        """Clearing an unset preference should not raise."""
        preferences.clear_preference("nonexistent_key")


class TestConfigLoader:
    """Test suite for config_loader module."""

    def test_get_config_path_with_preference_set(self, temp_home, tmp_path, gcp_config_content):
        custom = write_config(tmp_path / "custom.yml", gcp_config_content)
        preferences.set_preference("config_path", str(custom))

        assert config_loader._get_config_path() == str(custom)

    def test_get_config_path_returns_default_location(self, temp_home, temp_config_file):
        assert config_loader._get_config_path() == str(temp_config_file)

    def test_get_config_path_falls_back_when_preference_missing(self, temp_home, temp_config_file, tmp_path):
        preferences.set_preference("config_path", str(tmp_path / "nonexistent.yml"))
        assert config_loader._get_config_path() == str(temp_config_file)

    def test_get_config_path_raises_when_file_missing(self, temp_home):
        with pytest.raises(FileNotFoundError) as exc_info:
            config_loader._get_config_path()

        assert "Configuration file not found" in str(exc_info.value)

    def test_preference_change_reflected_immediately(self, temp_home, tmp_path, gcp_config_content):
        """Config path is resolved on every load, not cached."""
        first = dict(gcp_config_content, gcp={"project_id": "project-one"})
        second = dict(gcp_config_content, gcp={"project_id": "project-two"})
        config1 = write_config(tmp_path / "config1.yml", first)
        config2 = write_config(tmp_path / "config2.yml", second)

        preferences.set_preference("config_path", str(config1))
        assert config_loader.load_config()["gcp"]["project_id"] == "project-one"

        preferences.set_preference("config_path", str(config2))
        assert config_loader.load_config()["gcp"]["project_id"] == "project-two"

    def test_load_config_success(self, temp_home, temp_config_file):
        config = config_loader.load_config()

        assert config["storage"]["backend"] == "gcp"
        assert config["storage"]["prefix"] == "app/prod"
        assert config["gcp"]["project_id"] == "test-project"

    def test_memory_backend_needs_no_gcp_sections(self, temp_config_dir):
        write_config(temp_config_dir / "config.yml", {"storage": {"backend": "memory"}})
        assert config_loader.load_config()["storage"]["backend"] == "memory"

    def test_missing_storage_section(self, temp_config_dir, gcp_config_content):
        del gcp_config_content["storage"]
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "storage.backend" in str(exc_info.value)

    def test_unsupported_backend(self, temp_config_dir):
        write_config(temp_config_dir / "config.yml", {"storage": {"backend": "vault"}})

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Unsupported storage backend" in str(exc_info.value)

    def test_missing_prefix_for_gcp(self, temp_config_dir, gcp_config_content):
        gcp_config_content["storage"] = {"backend": "gcp"}
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "storage.prefix" in str(exc_info.value)

    def test_missing_authentication(self, temp_config_dir, gcp_config_content):
        del gcp_config_content["authentication"]
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "authentication" in str(exc_info.value)

    def test_missing_gcp_section(self, temp_config_dir, gcp_config_content):
        del gcp_config_content["gcp"]
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "gcp" in str(exc_info.value)

    @pytest.mark.parametrize("section", ["authentication", "gcp"])
    def test_empty_gcp_section(self, temp_config_dir, gcp_config_content, section):
        """A section present but left empty is reported, not a TypeError."""
        gcp_config_content[section] = None
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert section in str(exc_info.value)

    def test_service_account_file_must_exist(self, temp_config_dir, gcp_config_content):
        gcp_config_content["authentication"]["service_account_path"] = "/nonexistent/sa.json"
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Service account file not found" in str(exc_info.value)

    def test_unsupported_auth_type(self, temp_config_dir, gcp_config_content):
        gcp_config_content["authentication"]["type"] = "oauth2"
        write_config(temp_config_dir / "config.yml", gcp_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Unsupported authentication type" in str(exc_info.value)

    def test_empty_config_file(self, temp_config_dir):
        (temp_config_dir / "config.yml").write_text("")

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "empty" in str(exc_info.value).lower()

    def test_invalid_yaml_config(self, temp_config_dir):
        (temp_config_dir / "config.yml").write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "parse" in str(exc_info.value).lower()


class TestStoreFactory:
    """Building stores from loaded configuration."""

    def test_memory_backend(self):
        store = store_factory.build_store({"storage": {"backend": "memory"}})
        assert isinstance(store, VolatileStore)

    def test_gcp_backend(self, temp_home, gcp_config_content, service_account_file):
        store = store_factory.build_store(gcp_config_content)

        assert isinstance(store, RemoteSecretStore)
        assert store.prefix == "app/prod"
        assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(service_account_file)

    def test_gcp_project_env_override(self, temp_home, monkeypatch, gcp_config_content):
        monkeypatch.setenv("GCP_PROJECT", "override-project")
        assert store_factory.get_project_id(gcp_config_content) == "override-project"

    def test_gcp_project_from_config(self, temp_home, gcp_config_content):
        assert store_factory.get_project_id(gcp_config_content) == "test-project"

    def test_gcp_backend_without_prefix_rejected(self, temp_home, gcp_config_content):
        gcp_config_content["storage"] = {"backend": "gcp"}

        with pytest.raises(InvalidConfigurationError):
            store_factory.build_store(gcp_config_content)

    def test_gcp_backend_without_project_rejected(self, temp_home, gcp_config_content):
        del gcp_config_content["gcp"]

        with pytest.raises(InvalidConfigurationError):
            store_factory.build_store(gcp_config_content)

    def test_unknown_backend_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            store_factory.build_store({"storage": {"backend": "vault"}})

    def test_get_store_reads_config_file(self, temp_config_file):
        store = store_factory.get_store()

        assert isinstance(store, RemoteSecretStore)
        assert isinstance(store._client, GCPSecretClient)
        assert store._client.project_id == "test-project"


class TestCLICommands:
    """Test suite for CLI commands."""

    @pytest.fixture
    def memory_store(self, monkeypatch):
        store = VolatileStore()
        monkeypatch.setattr(store_factory, "get_store", lambda: store)
        return store

    def test_config_set_path_validates_file_exists(self, temp_home, tmp_path):
        args = Namespace(path=str(tmp_path / "nonexistent.yml"))

        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_config_set_path(args)

        assert exc_info.value.code == 1

    def test_config_set_path_stores_absolute_path(self, temp_home, temp_config_file):
        cli.cmd_config_set_path(Namespace(path=str(temp_config_file)))
        assert preferences.get_preference("config_path") == str(temp_config_file.resolve())

    def test_config_show_with_preference(self, temp_home, temp_config_file, capsys):
        preferences.set_preference("config_path", str(temp_config_file))

        cli.cmd_config_show(Namespace())

        captured = capsys.readouterr()
        assert str(temp_config_file) in captured.out
        assert "preference" in captured.out.lower()

    def test_config_show_without_preference(self, temp_home, temp_config_file, capsys):
        cli.cmd_config_show(Namespace())

        captured = capsys.readouterr()
        assert str(temp_config_file) in captured.out
        assert "default" in captured.out.lower()

    def test_config_clear_removes_preference(self, temp_home, temp_config_file, capsys):
        preferences.set_preference("config_path", str(temp_config_file))

        cli.cmd_config_clear(Namespace())

        assert preferences.get_preference("config_path") is None
        assert "cleared" in capsys.readouterr().out.lower()

    def test_secrets_write_then_read(self, memory_store, capsys):
        cli.cmd_secrets_write(Namespace(secret_name="db-pass", value="s3cr3t"))
        assert memory_store.read("db-pass") == b"s3cr3t"

        cli.cmd_secrets_read(Namespace(secret_name="db-pass", quiet=True))
        assert capsys.readouterr().out.splitlines()[-1] == "s3cr3t"

    def test_secrets_read_missing_exits_1(self, memory_store):
        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_secrets_read(Namespace(secret_name="missing", quiet=False))

        assert exc_info.value.code == 1

    def test_secrets_delete(self, memory_store, capsys):
        memory_store.write("db-pass", b"s3cr3t")

        cli.cmd_secrets_delete(Namespace(secret_name="db-pass"))
        cli.cmd_secrets_delete(Namespace(secret_name="db-pass"))

        assert memory_store.read("db-pass") is None
        assert "deleted" in capsys.readouterr().out

    def test_invalid_secret_name_exits_2(self, memory_store):
        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_secrets_read(Namespace(secret_name="api.key", quiet=False))

        assert exc_info.value.code == 2

    def test_empty_secret_value_exits_2(self, memory_store):
        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_secrets_write(Namespace(secret_name="db-pass", value="  "))

        assert exc_info.value.code == 2

    def test_secrets_help_explains_memory_backend_lifetime(self):
        _, _, secrets_parser = cli.build_parser()
        assert "memory" in secrets_parser.description
        assert "single command" in secrets_parser.description

    def test_main_without_command_exits_2(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 2

    def test_main_version(self, capsys):
        cli.main(["version"])
        assert cli.VERSION in capsys.readouterr().out

    def test_main_reports_missing_config(self, temp_home, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["secrets", "read", "db-pass"])

        assert exc_info.value.code == 1
        assert "Configuration file not found" in capsys.readouterr().err
