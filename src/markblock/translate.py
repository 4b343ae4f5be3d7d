"""
One-call entry points: template source (or tokens) -> generated code.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from markblock.compiler import compile_input
from markblock.config import Settings
from markblock.errors import TemplateError
from markblock.lexer import Token, tokenize
from markblock.nodes import Markup, emit
from markblock.parser import parse
from markblock.syntax import Input

logger = logging.getLogger(__name__)

Source = str | Sequence[Token]


def parse_source(source: Source) -> Input:
	"""Lex `source` when it is text, then parse it."""
	tokens = tokenize(source) if isinstance(source, str) else source
	return parse(tokens)


def compile_source(
	source: Source, settings: Settings | None = None
) -> tuple[Markup, Settings]:
	"""Parse and compile `source`, returning the root markup and the resolved settings.

	`settings` is the base that the template's own directives are applied to.
	"""
	return compile_input(parse_source(source), settings)


def translate(source: Source, settings: Settings | None = None) -> str:
	"""Translate a template into markup-builder code.

	Raises `TemplateSyntaxError` or `OrderingViolation`; nothing is emitted
	on failure. With debug printing enabled the output is also printed.
	"""
	markup, resolved = compile_source(source, settings)
	output = emit(markup)
	logger.debug("generated %d character(s) of output", len(output))
	if resolved.debug_print:
		print(output)
	return output


def expand(source: Source, settings: Settings | None = None) -> str:
	"""Like `translate`, but a failure replaces the output with one diagnostic."""
	try:
		return translate(source, settings)
	except TemplateError as e:
		logger.debug("translation failed at %s: %s", e.pos, e.message)
		return e.diagnostic()
