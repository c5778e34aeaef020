"""
Root Typer application for the indexspine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from indexspine import __version__

app = Typer(
    name="indexspine",
    help="indexspine — bulk reindexing of content into remote search indexes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("indexspine")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"indexspine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """indexspine CLI — rebuild and inspect search indexes."""


# ── Command registration ─────────────────────────────────────────────────

from indexspine.cli.reindex import indexes, reindex  # noqa: E402

app.command("reindex")(reindex)
app.command("indexes")(indexes)
