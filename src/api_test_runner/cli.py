"""
Command-line interface for the API test runner.
"""

import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import click
import yaml
from click.core import ParameterSource

from .config import ConfigurationError, RunnerConfig, load_config, validate_config
from .exceptions import ApiTestError
from .models import (
    RunCollectionTestsRequest,
    RunTestsRequest,
    TestCompleteEvent,
    TestProgressEvent,
    TestRunSummary,
    TestStartEvent,
)
from .reporting import ConsoleReporter, get_reporter
from .runner import RunEvent
from .service import run_collection_tests, run_tests, stream_collection_tests, stream_tests
from .storage import YamlCollectionStore

logger = logging.getLogger(__name__)

_COMMON_OPTIONS = [
    click.option(
        "--config", type=click.Path(exists=True), help="Path to configuration file (YAML)"
    ),
    click.option(
        "--stop-on-failure",
        is_flag=True,
        help="Stop the run at the first failed or errored request",
    ),
    click.option(
        "--delay",
        type=click.IntRange(min=0),
        help="Delay between requests in milliseconds",
    ),
    click.option(
        "--var",
        "variables",
        multiple=True,
        metavar="KEY=VALUE",
        help="Initial run variable (repeatable)",
    ),
    click.option(
        "--stream",
        is_flag=True,
        help="Print each request result as soon as it completes",
    ),
    click.option(
        "--report-format",
        type=click.Choice(["console", "junit", "json"]),
        help="Report format (overrides config)",
    ),
    click.option("--output", type=click.Path(), help="Output file for report (default: stdout)"),
    click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
        default="WARNING",
        help="Logging level",
    ),
]


def _common_options(func: Callable) -> Callable:
    """Apply the options shared by all run commands."""
    for option in reversed(_COMMON_OPTIONS):
        func = option(func)
    return func


def _handle_errors(func: Callable) -> Callable:
    """Map run errors to a message on stderr and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            logger.error("Configuration error: %s", e)
            click.echo(f"Configuration error: {e}", err=True)
            sys.exit(1)
        except ApiTestError as e:
            logger.error("Run rejected: %s", e)
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except FileNotFoundError as e:
            logger.error("File not found: %s", e)
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except click.ClickException:
            raise
        except Exception as e:
            logger.exception("Unexpected error: %s", e)
            click.echo(f"Unexpected error: {e}", err=True)
            sys.exit(1)

    return wrapper


def _option_given(name: str) -> bool:
    """True if an option was passed on the command line rather than defaulted."""
    source = click.get_current_context().get_parameter_source(name)
    return source is not None and source != ParameterSource.DEFAULT


def _parse_vars(values: Iterable[str]) -> Dict[str, str]:
    """Parse repeated ``--var KEY=VALUE`` options."""
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--var")
        variables[key] = value
    return variables


def _load_run_file(path: str) -> Dict[str, Any]:
    """Load a run file; YAML is a superset of JSON so both formats are accepted."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML/JSON in run file '{path}': {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Run file '{path}' must contain a mapping at the top level")
    return data


def _setup(config: Optional[str], log_level: str, report_format: Optional[str]) -> RunnerConfig:
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    logger.info("Loading configuration...")
    runner_config = load_config(config)
    if report_format:
        runner_config.report_format = report_format

    errors = validate_config(runner_config)
    if errors:
        click.echo("Configuration errors:", err=True)
        for error in errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)
    return runner_config


def _consume_stream(events: Iterable[RunEvent]) -> TestRunSummary:
    """Echo progress lines while a streamed run executes."""
    progress_reporter = ConsoleReporter()
    summary = None
    for event in events:
        if isinstance(event, TestStartEvent):
            click.echo(f"Running '{event.name}' ({event.total} request(s))...")
        elif isinstance(event, TestProgressEvent):
            line = progress_reporter.format_result(event.result)
            click.echo(f"[{event.index}/{event.total}] {line}")
        elif isinstance(event, TestCompleteEvent):
            summary = event.summary
    return summary


def _report_and_exit(
    summary: TestRunSummary, runner_config: RunnerConfig, output: Optional[str]
) -> None:
    reporter = get_reporter(runner_config.report_format)
    report = reporter.generate(summary)

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report)
        click.echo(f"Report written to: {output}")
        # Also print summary to console
        if runner_config.report_format != "console":
            click.echo(ConsoleReporter().generate(summary))
    else:
        click.echo(report)

    logger.info(
        "Tests complete: %d passed, %d failed, %d errors",
        summary.passed,
        summary.failed,
        summary.errors,
    )
    sys.exit(0 if summary.success else 1)


@click.group()
def main() -> None:
    """
    API Test Runner - Run sequential HTTP API tests with assertions and
    variable chaining.

    Examples:

      # Run the requests of a run file
      api-test run smoke.yaml

      # Stop at the first failure and pass an initial variable
      api-test run smoke.yaml --stop-on-failure --var baseUrl=http://localhost:8080

      # Run a stored collection folder, streaming progress
      api-test collection my-workspace users-api --folder auth --stream

      # CI mode with JUnit output
      api-test run smoke.yaml --report-format junit --output results.xml
    """


@main.command("run")
@click.argument("run_file", type=click.Path(exists=True, dir_okay=False))
@_common_options
@_handle_errors
def run_command(
    run_file: str,
    config: Optional[str],
    stop_on_failure: bool,
    delay: Optional[int],
    variables: Tuple[str, ...],
    stream: bool,
    report_format: Optional[str],
    output: Optional[str],
    log_level: str,
) -> None:
    """Run the requests listed in RUN_FILE (YAML or JSON)."""
    runner_config = _setup(config, log_level, report_format)

    # Precedence: command line, then run file, then configuration
    data = _load_run_file(run_file)
    data.setdefault("name", Path(run_file).stem)
    data.setdefault("stopOnFailure", runner_config.stop_on_failure)
    data.setdefault("delayBetweenRequests", runner_config.delay_between_requests)
    run_request = RunTestsRequest.from_dict(data)

    if _option_given("stop_on_failure"):
        run_request.stop_on_failure = stop_on_failure
    if delay is not None:
        run_request.delay_between_requests = delay
    merged = dict(runner_config.variables)
    merged.update(run_request.variables)
    merged.update(_parse_vars(variables))
    run_request.variables = merged

    if stream:
        summary = _consume_stream(stream_tests(run_request, runner_config))
    else:
        click.echo(f"Running '{run_request.name}' ({len(run_request.requests)} request(s))...")
        summary = run_tests(run_request, runner_config)

    _report_and_exit(summary, runner_config, output)


@main.command("collection")
@click.argument("workspace_id")
@click.argument("collection_id")
@click.option(
    "--folder", "folder_id", help="Only run the requests of this folder and its subfolders"
)
@click.option(
    "--storage-dir", type=click.Path(file_okay=False), help="Workspace storage directory"
)
@_common_options
@_handle_errors
def collection_command(
    workspace_id: str,
    collection_id: str,
    folder_id: Optional[str],
    storage_dir: Optional[str],
    config: Optional[str],
    stop_on_failure: bool,
    delay: Optional[int],
    variables: Tuple[str, ...],
    stream: bool,
    report_format: Optional[str],
    output: Optional[str],
    log_level: str,
) -> None:
    """Run the requests of stored collection COLLECTION_ID in WORKSPACE_ID."""
    runner_config = _setup(config, log_level, report_format)
    if storage_dir:
        runner_config.storage_dir = storage_dir

    merged = dict(runner_config.variables)
    merged.update(_parse_vars(variables))
    request = RunCollectionTestsRequest(
        stop_on_failure=(
            stop_on_failure if _option_given("stop_on_failure") else runner_config.stop_on_failure
        ),
        delay_between_requests=(
            delay if delay is not None else runner_config.delay_between_requests
        ),
        variables=merged,
        folder_id=folder_id,
    )
    store = YamlCollectionStore(runner_config.storage_path)

    if stream:
        events = stream_collection_tests(
            store, workspace_id, collection_id, request, runner_config
        )
        summary = _consume_stream(events)
    else:
        summary = run_collection_tests(store, workspace_id, collection_id, request, runner_config)

    _report_and_exit(summary, runner_config, output)


if __name__ == "__main__":
    main()
