"""Command line interface for browser-agent."""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from .config import AgentConfig, CompactionPolicy, load_config
from .factory import build_agent, build_browser, build_llm, build_notifier
from .models import AgentRunResult, RunStatus

app = typer.Typer(help="Browser Agent entry point")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("browser-agent"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def run(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option(
            "--env-file",
            help="Path to an .env file with default configuration values.",
        ),
    ] = None,
    task: Annotated[
        Optional[str],
        typer.Option("--task", help="Task for the agent, in natural language."),
    ] = None,
    llm_provider: Annotated[
        Optional[str],
        typer.Option("--llm-provider", help="LLM provider to use (openai, anthropic, mock)."),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", help="LLM model identifier."),
    ] = None,
    api_key: Annotated[
        Optional[str],
        typer.Option("--api-key", help="API key for the LLM provider."),
    ] = None,
    base_url: Annotated[
        Optional[str],
        typer.Option("--base-url", help="Base URL of the LLM endpoint."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    max_iterations: Annotated[
        Optional[int],
        typer.Option("--max-iterations", help="Maximum number of model requests."),
    ] = None,
    compaction: Annotated[
        Optional[CompactionPolicy],
        typer.Option("--compaction", help="When to prune old snapshots from the history."),
    ] = None,
    strict: Annotated[
        Optional[bool],
        typer.Option(
            "--strict/--lenient",
            help="Nudge the model to call tools when it replies with plain text.",
        ),
    ] = None,
) -> None:
    """Run a browser automation task."""

    overrides: dict[str, Any] = {}
    if task:
        overrides["task"] = {"description": task}
    if any([llm_provider, model, api_key, base_url]):
        overrides.setdefault("llm", {})
        if llm_provider:
            overrides["llm"]["provider"] = llm_provider
        if model:
            overrides["llm"]["model"] = model
        if api_key:
            overrides["llm"]["api_key"] = api_key
        if base_url:
            overrides["llm"]["base_url"] = base_url
    if headless is not None:
        overrides["browser"] = {"headless": headless}
    if max_iterations is not None:
        overrides["max_iterations"] = max_iterations
    if compaction is not None:
        overrides["compaction_policy"] = compaction.value
    if strict is not None:
        overrides["require_tool_calls"] = strict

    config = load_config(config_path, env_file=env_file, **overrides)
    if config.task is None:
        typer.echo("No task given. Use --task or set task.description in the configuration.", err=True)
        raise typer.Exit(code=2)
    typer.echo(f"Loaded configuration for task: {config.task.description}")

    result = asyncio.run(_run_agent(config, config.task.description))
    typer.echo(result.output)
    if result.status is not RunStatus.FINISHED:
        typer.echo(f"Agent stopped: {result.status.value}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Task completed successfully.")


async def _run_agent(config: AgentConfig, task: str) -> AgentRunResult:
    llm = build_llm(config.llm)
    session = build_browser(config.browser)
    notifier = build_notifier(config.notifications)
    agent = build_agent(config, llm, session, notifier)
    try:
        return await agent.run(task)
    finally:
        await llm.aclose()


if __name__ == "__main__":
    app()
