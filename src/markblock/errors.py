from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Position:
	"""1-based line and column of a construct in the template source."""

	line: int = 1
	column: int = 1

	def __str__(self) -> str:
		return f"{self.line}:{self.column}"


CALL_SITE = Position(1, 1)


class TemplateError(Exception):
	"""Base class for errors that abort a translation.

	The whole output of the invocation is replaced by a single diagnostic,
	see `diagnostic()`.
	"""

	message: str
	pos: Position

	def __init__(self, message: str, pos: Position) -> None:
		super().__init__(f"{pos}: {message}")
		self.message = message
		self.pos = pos

	def diagnostic(self) -> str:
		"""Render the error as the replacement output for the invocation."""
		escaped = self.message.replace("\\", "\\\\").replace('"', '\\"')
		return f'::core::compile_error! {{ "{escaped}" }}'


class TemplateSyntaxError(TemplateError):
	"""The token stream does not match the grammar at `pos`."""

	expected: tuple[str, ...]
	found: str | None

	def __init__(
		self,
		pos: Position,
		expected: Sequence[str] = (),
		found: str | None = None,
		message: str | None = None,
	) -> None:
		self.expected = tuple(expected)
		self.found = found
		if message is None:
			message = _describe(self.expected, found)
		super().__init__(message, pos)


class OrderingViolation(TemplateError):
	"""A `let` statement follows non-`let` content in the same block."""

	def __init__(self, pos: Position) -> None:
		super().__init__(
			"let statements must precede all other statements in a block", pos
		)


def _describe(expected: tuple[str, ...], found: str | None) -> str:
	if not expected:
		head = "unexpected token"
	elif len(expected) == 1:
		head = f"expected {expected[0]}"
	else:
		head = "expected one of: " + ", ".join(expected)
	if found is None:
		return f"{head}, found end of input"
	return f"{head}, found `{found}`"
