"""CLI entrypoint for task-harness."""

import logging
from dataclasses import replace

import rich_click as click
from rich.logging import RichHandler

from task_harness import __version__
from task_harness.config import Settings
from task_harness.controllers import HarnessCliController, RunTaskCommand

click.rich_click.USE_MARKDOWN = True


@click.group()
@click.version_option(version=__version__, prog_name="task-harness")
def task_harness() -> None:
    """Run generator-based tasks with retry, recover and restart policies."""


@task_harness.command("run")
@click.argument("target")
@click.option(
    "--max-retries",
    type=click.IntRange(min=0),
    default=None,
    help="Retries per failed computation before falling back. Defaults to TASK_HARNESS_MAX_RETRIES.",
)
@click.option(
    "--retry-forever",
    is_flag=True,
    default=False,
    help="Retry failed computations until they succeed.",
)
@click.option(
    "--max-restarts",
    type=click.IntRange(min=0),
    default=None,
    help="Whole-task restarts allowed per run. Defaults to TASK_HARNESS_MAX_RESTARTS.",
)
@click.option(
    "--recover-on-exhaustion",
    is_flag=True,
    default=False,
    help="Resume the task with `None` once retries are exhausted.",
)
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default=None,
    help="Log level. Defaults to TASK_HARNESS_LOG_LEVEL.",
)
def run(  # noqa: PLR0913
    target: str,
    max_retries: int | None,
    retry_forever: bool,
    max_restarts: int | None,
    recover_on_exhaustion: bool,
    log_level: str | None,
) -> None:
    """Run TARGET (`package.module:function`) and print what the handler did."""

    try:
        settings = Settings.from_env()
        if log_level is not None:
            settings = replace(settings, log_level=log_level.upper())
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _configure_logging(settings.log_level)

    controller = HarnessCliController(settings)
    try:
        result = controller.run_task(
            RunTaskCommand(
                target=target,
                max_retries=max_retries,
                retry_forever=retry_forever,
                max_restarts=max_restarts,
                recover_on_exhaustion=recover_on_exhaustion,
            ),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_harness()
