"""Tests for client configuration loading."""

from pathlib import Path

import pytest

from pillow_request.config_loader import CONFIG_PATH_ENV, ConfigError, load_client_config
from pillow_request.models import ClientConfig


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "client.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadClientConfig:
    def test_full_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_TOKEN", "secret")
        path = _write(
            tmp_path,
            """
use_https: true
timeout_ms: 2500
headers:
  Authorization: "Bearer ${API_TOKEN}"
  Accept: [application/json, text/plain]
transport:
  verify_ssl: false
  follow_redirects: true
""",
        )
        config = load_client_config(path)
        assert config.use_https is True
        assert config.timeout_ms == 2500
        assert config.headers == {
            "Authorization": "Bearer secret",
            "Accept": ["application/json", "text/plain"],
        }
        assert config.transport.verify_ssl is False
        assert config.transport.follow_redirects is True

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_client_config(_write(tmp_path, "")) == ClientConfig()

    def test_accepts_str_path(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "use_https: true\n")
        assert load_client_config(str(path)).use_https is True

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_client_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_client_config(_write(tmp_path, "headers: [unclosed"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_client_config(_write(tmp_path, "- a\n- b\n"))

    def test_unset_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PILLOW_MISSING_VAR", raising=False)
        path = _write(tmp_path, "headers:\n  X-Key: ${PILLOW_MISSING_VAR}\n")
        with pytest.raises(ConfigError, match="PILLOW_MISSING_VAR"):
            load_client_config(path)

    def test_unknown_field(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid config structure"):
            load_client_config(_write(tmp_path, "retries: 3\n"))

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="timeout_ms"):
            load_client_config(_write(tmp_path, "timeout_ms: 0\n"))

    def test_cert_without_key(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cert and key"):
            load_client_config(_write(tmp_path, "transport:\n  cert: client.pem\n"))


class TestEnvReferences:
    def test_fallback_used_when_unset(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PILLOW_DEPLOY_ENV", raising=False)
        path = _write(tmp_path, 'headers:\n  X-Env: "${PILLOW_DEPLOY_ENV:-dev}"\n')
        assert load_client_config(path).headers == {"X-Env": "dev"}

    def test_set_variable_beats_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PILLOW_DEPLOY_ENV", "prod")
        path = _write(tmp_path, 'headers:\n  X-Env: "${PILLOW_DEPLOY_ENV:-dev}"\n')
        assert load_client_config(path).headers == {"X-Env": "prod"}

    def test_empty_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PILLOW_CA_BUNDLE", raising=False)
        path = _write(tmp_path, 'transport:\n  ca_bundle: "${PILLOW_CA_BUNDLE:-}"\n')
        assert load_client_config(path).transport.ca_bundle == ""

    def test_references_inside_lists(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PILLOW_ACCEPT", "application/json")
        path = _write(tmp_path, 'headers:\n  Accept: ["${PILLOW_ACCEPT}", text/plain]\n')
        assert load_client_config(path).headers == {"Accept": ["application/json", "text/plain"]}

    def test_keys_not_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PILLOW_NAME", "X-Real")
        path = _write(tmp_path, 'headers:\n  "${PILLOW_NAME}": v\n')
        assert load_client_config(path).headers == {"${PILLOW_NAME}": "v"}


class TestConfigPathFromEnvironment:
    def test_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(_write(tmp_path, "timeout_ms: 750\n")))
        assert load_client_config().timeout_ms == 750

    def test_no_path_and_no_env_gives_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        assert load_client_config() == ClientConfig()

    def test_explicit_path_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "missing.yaml"))
        path = _write(tmp_path, "use_https: true\n")
        assert load_client_config(path).use_https is True

    def test_env_path_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "missing.yaml"))
        with pytest.raises(ConfigError, match="not found"):
            load_client_config()
