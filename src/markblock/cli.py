"""
Command-line interface for markblock.
Translates template files and reports template errors with their position.
"""
# typer relies on function calls used as default values
# pyright: reportCallInDefaultInitializer=false

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from markblock.config import Settings
from markblock.errors import TemplateError
from markblock.nodes import emit
from markblock.translate import compile_source

cli = typer.Typer(
	name="markblock",
	help="markblock - compile HTML-like template blocks into markup-builder calls",
	no_args_is_help=True,
)

stderr = Console(stderr=True, soft_wrap=True)


def _read_source(source: str) -> tuple[str, str]:
	"""Return (display name, text) for a path, or `-` for stdin."""
	if source == "-":
		return "<stdin>", sys.stdin.read()
	path = Path(source)
	if not path.is_file():
		stderr.print(f"[red]File not found:[/red] {escape(source)}")
		raise typer.Exit(2)
	return str(path), path.read_text()


def _settings(macro_path: str | None) -> Settings:
	try:
		return Settings().with_overrides(macro_path=macro_path)
	except TemplateError as e:
		stderr.print(
			f"[red]Invalid --macro-path[/red] {escape(repr(macro_path))}: "
			+ escape(e.message)
		)
		raise typer.Exit(2) from None


def _report(name: str, error: TemplateError) -> None:
	stderr.print(
		f"[bold red]error[/bold red] {escape(name)}:{error.pos}: {escape(error.message)}"
	)


def _configure_logging(level: str) -> None:
	logging.basicConfig(
		level=level.upper(),
		format="%(levelname)s %(name)s: %(message)s",
	)


@cli.command("compile")
def compile_cmd(
	source: str = typer.Argument(..., help="Template file, or '-' for stdin"),
	macro_path: str | None = typer.Option(
		None,
		"--macro-path",
		help="Entry point to build fragments with (template directives win)",
	),
	log_level: str = typer.Option("warning", "--log-level"),
):
	"""Translate a template and print the generated code."""
	_configure_logging(log_level)
	name, text = _read_source(source)
	settings = _settings(macro_path)
	try:
		markup, _ = compile_source(text, settings)
	except TemplateError as e:
		_report(name, e)
		raise typer.Exit(1) from None
	typer.echo(emit(markup))


@cli.command("check")
def check_cmd(
	source: str = typer.Argument(..., help="Template file, or '-' for stdin"),
	log_level: str = typer.Option("warning", "--log-level"),
):
	"""Parse and compile a template without printing the output."""
	_configure_logging(log_level)
	name, text = _read_source(source)
	try:
		markup, _ = compile_source(text)
	except TemplateError as e:
		_report(name, e)
		raise typer.Exit(1) from None
	typer.echo(
		f"{name}: ok ({len(markup.locals)} binding(s), {len(markup.children)} node(s))"
	)


def main() -> None:
	cli()


if __name__ == "__main__":
	main()
