from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from ._version import __version__
from .environment import (
    FlagEnvironment,
    FlagEnvironmentError,
    format_validation_error,
    parse_flag,
)
from .parser import CfgParseError, parse_str
from .predicate import Predicate, predicate_to_json
from .printer import to_text

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


@app.callback()
def cli(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug details to stderr.",
    ),
) -> None:
    """runtime-cfg command line interface."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("runtime_cfg").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )


@app.command()
def version() -> None:
    """Print the runtime-cfg version."""
    typer.echo(__version__)


def _parse_expression(expression: str) -> Predicate:
    """Parse a predicate, turning parse errors into CLI parameter errors."""
    try:
        predicate = parse_str(expression)
    except CfgParseError as exc:
        raise typer.BadParameter(
            f"Invalid predicate: {exc}", param_hint="'EXPRESSION'"
        ) from exc
    logger.debug("Parsed %r as %r", expression, predicate)
    return predicate


def _load_environment(
    env_path: Path | None, flags: list[str] | None
) -> FlagEnvironment:
    """Build the flag environment from an optional JSON file plus --flag specs."""
    try:
        if env_path is not None:
            environment = FlagEnvironment.load(env_path)
            logger.debug(
                "Loaded %d flags from %s", len(environment), env_path
            )
        else:
            environment = FlagEnvironment()
        if flags:
            environment = environment.extend(parse_flag(spec) for spec in flags)
    except ValidationError as exc:
        raise typer.BadParameter(format_validation_error(exc)) from exc
    except FlagEnvironmentError as exc:
        raise typer.BadParameter(str(exc)) from exc
    logger.debug("Active flags: %s", environment.pairs())
    return environment


@app.command("fmt")
def format_expression(
    expression: str = typer.Argument(
        ...,
        help="Predicate text, e.g. 'all(unix, target_pointer_width = \"32\")'.",
    ),
) -> None:
    """Print the canonical form of a predicate."""
    typer.echo(to_text(_parse_expression(expression)))


@app.command("parse")
def parse_expression(
    expression: str = typer.Argument(
        ...,
        help="Predicate text to parse.",
    ),
    indent: int = typer.Option(
        2,
        "--indent",
        help="JSON indentation (0 for compact output).",
    ),
) -> None:
    """Print the syntax tree of a predicate as JSON."""
    predicate = _parse_expression(expression)
    typer.echo(predicate_to_json(predicate, indent=indent or None))


@app.command("eval")
def eval_expression(
    expression: str = typer.Argument(
        ...,
        help="Predicate text to evaluate.",
    ),
    env: Path | None = typer.Option(
        None,
        "--env",
        "-e",
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON file with the active flags.",
    ),
    flag: list[str] | None = typer.Option(
        None,
        "--flag",
        "-f",
        help="Active flag as KEY or KEY=VALUE (repeatable).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output; report the result through the exit code only.",
    ),
) -> None:
    """Evaluate a predicate against a set of flags.

    Exits with status 0 when the predicate matches and 1 when it does not.
    """
    predicate = _parse_expression(expression)
    environment = _load_environment(env, flag)
    result = predicate.matches(environment)
    if not quiet:
        typer.echo("true" if result else "false")
    if not result:
        raise typer.Exit(code=1)


# Click command used by the sphinx_click directive in docs/index.rst.
typer_click_object = typer.main.get_command(app)


def main() -> None:
    app(prog_name="runtime-cfg")


if __name__ == "__main__":
    main()
