"""
Template syntax tree produced by the parser.

Plain frozen dataclasses; no behaviour beyond rendering captured source.
Expressions, patterns and guards are never interpreted: they are kept as
`Raw` token runs and written back out verbatim by the compiler.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeAlias

from markblock.errors import Position
from markblock.lexer import Token


def render_tokens(tokens: Iterable[Token]) -> str:
	"""Write tokens back out as source text.

	A space is inserted where the source had whitespace, and between two
	word-like tokens that would otherwise fuse (`x as u32`).
	"""
	out: list[str] = []
	prev: Token | None = None
	for tok in tokens:
		if prev is not None and (tok.spaced or (_wordlike(prev) and _wordlike(tok))):
			out.append(" ")
		out.append(tok.text)
		prev = tok
	return "".join(out)


def _wordlike(tok: Token) -> bool:
	return tok.kind != "punct"


# =============================================================================
# Captured syntax
# =============================================================================


@dataclass(frozen=True, slots=True)
class Raw:
	"""Opaque captured syntax (an expression, guard or generic list)."""

	tokens: tuple[Token, ...]
	pos: Position

	@property
	def text(self) -> str:
		return render_tokens(self.tokens)

	def __str__(self) -> str:
		return self.text


@dataclass(frozen=True, slots=True)
class Pattern:
	"""Opaque pattern, split only on top-level `|` alternatives."""

	alternatives: tuple[Raw, ...]
	pos: Position
	leading_vert: bool = False

	@property
	def text(self) -> str:
		body = " | ".join(alt.text for alt in self.alternatives)
		return f"| {body}" if self.leading_vert else body

	def __str__(self) -> str:
		return self.text


@dataclass(frozen=True, slots=True)
class PathSegment:
	name: str
	pos: Position
	generics: Raw | None = None

	@property
	def text(self) -> str:
		if self.generics is None:
			return self.name
		return self.name + self.generics.text


@dataclass(frozen=True, slots=True)
class ElementPath:
	"""Namespace-qualified element or entry-point reference: `::a::b<T>`."""

	segments: tuple[PathSegment, ...]
	pos: Position
	leading_colon: bool = False

	@property
	def text(self) -> str:
		joined = "::".join(seg.text for seg in self.segments)
		return "::" + joined if self.leading_colon else joined

	def __str__(self) -> str:
		return self.text


# =============================================================================
# Directives
# =============================================================================


@dataclass(frozen=True, slots=True)
class DebugPrint:
	"""`@__debug_print`: print the generated output."""

	pos: Position


@dataclass(frozen=True, slots=True)
class MacroPath:
	"""`@macro_path path`: route the output through another entry point."""

	path: ElementPath
	pos: Position


Config: TypeAlias = DebugPrint | MacroPath


# =============================================================================
# Statements
# =============================================================================


@dataclass(frozen=True, slots=True)
class Block:
	"""Statements of one brace-delimited scope; `pos` is the opening brace."""

	statements: tuple[Statement, ...]
	pos: Position


@dataclass(frozen=True, slots=True)
class Else:
	body: Block
	pos: Position


@dataclass(frozen=True, slots=True)
class If:
	cond: Raw
	body: Block
	pos: Position
	else_: Else | None = None


@dataclass(frozen=True, slots=True)
class Arm:
	pattern: Pattern
	body: Block
	pos: Position
	guard: Raw | None = None


@dataclass(frozen=True, slots=True)
class Match:
	scrutinee: Raw
	arms: tuple[Arm, ...]
	pos: Position
	brace_pos: Position


@dataclass(frozen=True, slots=True)
class For:
	pattern: Pattern
	iterable: Raw
	body: Block
	pos: Position
	in_pos: Position


@dataclass(frozen=True, slots=True)
class Let:
	pattern: Pattern
	value: Raw
	pos: Position


@dataclass(frozen=True, slots=True)
class Text:
	value: Raw
	pos: Position


@dataclass(frozen=True, slots=True)
class Arg:
	"""`data-length = expr`, or shorthand `name` with no value."""

	segments: tuple[str, ...]
	pos: Position
	value: Raw | None = None
	eq_pos: Position | None = None

	@property
	def name(self) -> str:
		return "-".join(self.segments)


@dataclass(frozen=True, slots=True)
class NoArgs:
	pass


@dataclass(frozen=True, slots=True)
class NamedArgs:
	args: tuple[Arg, ...]
	pos: Position


@dataclass(frozen=True, slots=True)
class SpreadArgs:
	expr: Raw
	pos: Position


Arguments: TypeAlias = NoArgs | NamedArgs | SpreadArgs


@dataclass(frozen=True, slots=True)
class SelfClosing:
	pos: Position


@dataclass(frozen=True, slots=True)
class Children:
	block: Block


NodeBody: TypeAlias = SelfClosing | Children


@dataclass(frozen=True, slots=True)
class Node:
	element: ElementPath
	args: Arguments
	body: NodeBody
	pos: Position


Statement: TypeAlias = If | Match | For | Let | Text | Node


@dataclass(frozen=True, slots=True)
class Input:
	"""A whole invocation: leading directives and the root block."""

	configs: tuple[Config, ...]
	root: Block
