from pathlib import Path

import pytest
from pydantic import ValidationError

from browser_agent.config import AgentConfig, CompactionPolicy, load_config


def test_defaults() -> None:
    config = AgentConfig(_env_file=None)

    assert config.task is None
    assert config.max_iterations == 50
    assert config.compaction_policy is CompactionPolicy.ALWAYS
    assert config.require_tool_calls is False
    assert config.close_browser_on_finish is True
    assert config.llm.provider == "openai"
    assert config.browser.headless is False


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSER_AGENT_TASK__DESCRIPTION=Task from env",
                "BROWSER_AGENT_LLM__PROVIDER=mock",
                "BROWSER_AGENT_MAX_ITERATIONS=10",
                "BROWSER_AGENT_COMPACTION_POLICY=never",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.task is not None
    assert config.task.description == "Task from env"
    assert config.llm.provider == "mock"
    assert config.max_iterations == 10
    assert config.compaction_policy is CompactionPolicy.NEVER


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSER_AGENT_TASK__DESCRIPTION=Env description",
                "BROWSER_AGENT_LLM__PROVIDER=mock",
            ]
        )
    )

    config_path = tmp_path / "task.yaml"
    config_path.write_text(
        "\n".join(
            [
                "task:",
                "  description: File description",
                "llm:",
                "  model: file-model",
                "browser:",
                "  headless: true",
            ]
        )
    )

    config = load_config(
        config_path,
        env_file=env_path,
        llm={"model": "override-model"},
        require_tool_calls=True,
    )

    assert config.task is not None
    assert config.task.description == "File description"
    assert config.llm.provider == "mock"
    assert config.llm.model == "override-model"
    assert config.browser.headless is True
    assert config.require_tool_calls is True


def test_max_iterations_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_config(env_file=tmp_path / "missing.env", max_iterations=0)


def test_config_is_frozen() -> None:
    config = AgentConfig(_env_file=None)

    with pytest.raises(ValidationError):
        config.max_iterations = 3  # type: ignore[misc]
