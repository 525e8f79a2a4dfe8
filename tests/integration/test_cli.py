"""CLI tests through Typer's runner (no provider keys, no network)."""

import pytest
import yaml
from typer.testing import CliRunner

from cli.commands.main import app


runner = CliRunner()


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "DEEPSEEK_API_KEY", "ANTHROPIC_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    documents = tmp_path / "documents"
    documents.mkdir()
    (documents / "1.html").write_text(
        "<!-- wp:paragraph --><p>こんにちは</p><!-- /wp:paragraph -->", encoding="utf-8"
    )

    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {"directory": str(tmp_path / "state"), "documents_directory": str(documents)},
    }), encoding="utf-8")
    return str(path)


def invoke(config_path, *args):
    return runner.invoke(app, ["--config", config_path, *args])


def test_providers_without_keys(config_path):
    result = invoke(config_path, "providers")

    assert result.exit_code == 0
    assert "Not configured" in result.output


def test_translate_without_keys_fails_cleanly(config_path):
    result = invoke(config_path, "translate", "1", "-t", "en")

    assert result.exit_code == 1
    assert "Error: Translation features are currently unavailable" in result.output


def test_keys_set_list_delete(config_path):
    result = invoke(config_path, "keys", "set", "openai", "sk-abcdefgh1234")
    assert result.exit_code == 0
    assert "sk-a*******1234" in result.output

    with open(config_path, "r", encoding="utf-8") as f:
        assert yaml.safe_load(f)["api_keys"] == {"openai": "sk-abcdefgh1234"}

    result = invoke(config_path, "keys", "list")
    assert result.exit_code == 0
    assert "sk-a*******1234" in result.output

    result = invoke(config_path, "keys", "delete", "openai")
    assert result.exit_code == 0
    with open(config_path, "r", encoding="utf-8") as f:
        assert yaml.safe_load(f)["api_keys"] == {}


def test_keys_set_unknown_provider(config_path):
    result = invoke(config_path, "keys", "set", "babelfish", "key")

    assert result.exit_code == 1
    assert "Unknown provider" in result.output


def test_usage(config_path):
    result = invoke(config_path, "usage")

    assert result.exit_code == 0
    assert "100" in result.output
    assert "3000" in result.output


def test_license_actions(config_path):
    result = invoke(config_path, "license")
    assert result.exit_code == 0
    assert "no expiry set" in result.output

    result = invoke(config_path, "license", "deliver")
    assert result.exit_code == 0
    assert "Remaining days: 30" in result.output

    result = invoke(config_path, "license", "extend")
    assert "Remaining days: 60" in result.output

    result = invoke(config_path, "license", "extend")
    assert result.exit_code == 1
    assert "only be used once" in result.output


def test_approve_without_pending(config_path):
    result = invoke(config_path, "approve", "1")

    assert result.exit_code == 1
    assert "No pending translation" in result.output


def test_select_unknown_comparison(config_path):
    result = invoke(config_path, "select", "ab_missing", "openai")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_stop(config_path):
    invoke(config_path, "keys", "set", "claude", "sk-ant-0000000")

    result = invoke(config_path, "stop", "--yes")

    assert result.exit_code == 0
    with open(config_path, "r", encoding="utf-8") as f:
        assert yaml.safe_load(f)["api_keys"] == {}
