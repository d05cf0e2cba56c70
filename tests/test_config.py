from pathlib import Path

import pytest

from browser_action_api.config import (
    DEFAULT_LAUNCH_ARGS,
    ServiceConfig,
    load_config,
    read_config_file,
)


def test_defaults_match_container_friendly_launch() -> None:
    config = ServiceConfig()

    assert config.browser.headless is True
    assert (config.browser.viewport_width, config.browser.viewport_height) == (1280, 720)
    assert config.browser.launch_args == DEFAULT_LAUNCH_ARGS
    assert "--no-sandbox" in config.browser.launch_args
    assert config.browser.action_timeout == 30.0
    assert config.download.max_urls == 10
    assert config.auth.api_key is None


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSER_ACTION_API_SERVER__PORT=9000",
                "BROWSER_ACTION_API_AUTH__API_KEY=secret",
                "BROWSER_ACTION_API_BROWSER__ACTION_TIMEOUT=5",
                "BROWSER_ACTION_API_LOG_LEVEL=DEBUG",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.server.port == 9000
    assert config.auth.api_key == "secret"
    assert config.browser.action_timeout == 5.0
    assert config.log_level == "DEBUG"


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSER_ACTION_API_SERVER__PORT=9000",
                "BROWSER_ACTION_API_AUTH__API_KEY=from-env",
            ]
        )
    )

    config_path = tmp_path / "service.yaml"
    config_path.write_text(
        "\n".join(
            [
                "server:",
                "  host: 127.0.0.1",
                "browser:",
                "  viewport_width: 800",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, server={"port": 9100})

    assert config.server.host == "127.0.0.1"
    assert config.server.port == 9100
    assert config.browser.viewport_width == 800
    assert config.browser.viewport_height == 720
    assert config.auth.api_key == "from-env"


def test_partial_override_keeps_rest_of_section(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text("BROWSER_ACTION_API_SERVER__HOST=10.0.0.5\n")
    overrides = {"server": {"port": 9200}}

    config = load_config(env_file=env_path, **overrides)

    assert config.server.host == "10.0.0.5"
    assert config.server.port == 9200
    assert overrides == {"server": {"port": 9200}}


def test_empty_config_file_means_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "service.yaml"
    config_path.write_text("")

    assert read_config_file(config_path) == {}
    assert load_config(config_path).server.port == 3001


def test_config_file_must_hold_sections(tmp_path: Path) -> None:
    config_path = tmp_path / "service.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path)
