"""
Token stream -> template syntax tree.

Recursive descent with a single token of lookahead. The first mismatch raises
`TemplateSyntaxError` naming the alternatives that were acceptable at that
point; there is no recovery and no partial tree.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from markblock.errors import CALL_SITE, Position, TemplateSyntaxError
from markblock.lexer import CLOSE_DELIMITERS, OPEN_DELIMITERS, Token
from markblock.syntax import (
	Arg,
	Arguments,
	Arm,
	Block,
	Children,
	Config,
	DebugPrint,
	Else,
	ElementPath,
	For,
	If,
	Input,
	Let,
	MacroPath,
	Match,
	NamedArgs,
	Node,
	NodeBody,
	NoArgs,
	PathSegment,
	Pattern,
	Raw,
	SelfClosing,
	SpreadArgs,
	Statement,
	Text,
)

logger = logging.getLogger(__name__)

KEYWORDS = frozenset(
	{
		"as",
		"async",
		"await",
		"break",
		"const",
		"continue",
		"crate",
		"dyn",
		"else",
		"enum",
		"extern",
		"false",
		"fn",
		"for",
		"if",
		"impl",
		"in",
		"let",
		"loop",
		"match",
		"mod",
		"move",
		"mut",
		"pub",
		"ref",
		"return",
		"self",
		"Self",
		"static",
		"struct",
		"super",
		"trait",
		"true",
		"type",
		"unsafe",
		"use",
		"where",
		"while",
	}
)

# Keywords that may still start or continue an element reference.
PATH_KEYWORDS = frozenset({"crate", "self", "super", "Self"})

DEBUG_PRINT_DIRECTIVE = "__debug_print"
MACRO_PATH_DIRECTIVE = "macro_path"

StopFn = Callable[[Token], bool]


def _stop_at_brace(tok: Token) -> bool:
	return tok.is_punct("{") or tok.is_punct(";")


def _stop_at_semi(tok: Token) -> bool:
	return tok.is_punct(";")


def _stop_at_fat_arrow(tok: Token) -> bool:
	return tok.is_punct("=>")


def _opens_closure(prev: Token | None) -> bool:
	"""Whether a `|` after `prev` starts closure parameters rather than a bit-or."""
	if prev is None or prev.is_ident("move"):
		return True
	return prev.kind == "punct" and prev.text not in CLOSE_DELIMITERS


def is_path_ident(tok: Token) -> bool:
	"""An identifier usable as an element path segment."""
	if tok.kind != "ident":
		return False
	return tok.text not in KEYWORDS or tok.text in PATH_KEYWORDS


class Lookahead:
	"""Records what was peeked for so a failure can list the alternatives."""

	__slots__: tuple[str, ...] = ("_parser", "_expected")
	_parser: Parser
	_expected: list[str]

	def __init__(self, parser: Parser) -> None:
		self._parser = parser
		self._expected = []

	def punct(self, text: str) -> bool:
		self._expected.append(f"`{text}`")
		tok = self._parser.peek()
		return tok is not None and tok.is_punct(text)

	def keyword(self, text: str) -> bool:
		self._expected.append(f"`{text}`")
		tok = self._parser.peek()
		return tok is not None and tok.is_ident(text)

	def element(self) -> bool:
		self._expected.append("identifier")
		tok = self._parser.peek()
		if tok is None:
			return False
		return is_path_ident(tok) or tok.is_punct("::")

	def error(self) -> TemplateSyntaxError:
		return self._parser.error(self._expected)


class Parser:
	"""Parse a token sequence into an `Input`."""

	tokens: Sequence[Token]
	index: int

	def __init__(self, tokens: Sequence[Token]) -> None:
		self.tokens = tokens
		self.index = 0

	# --- Entrypoints ---------------------------------------------------------

	def parse(self) -> Input:
		configs: list[Config] = []
		while (tok := self.peek()) is not None and tok.is_punct("@"):
			configs.append(self.parse_config())

		root_pos = self.tokens[0].pos if self.tokens else CALL_SITE
		statements = self.parse_statements(closing=False)
		logger.debug(
			"parsed %d directive(s) and %d root statement(s)",
			len(configs),
			len(statements),
		)
		return Input(tuple(configs), Block(statements, root_pos))

	def parse_path_only(self) -> ElementPath:
		"""Parse a lone qualified name, rejecting trailing tokens."""
		path = self.parse_element_path()
		if self.peek() is not None:
			raise self.error(("`::`", "end of input"))
		return path

	# --- Cursor ---------------------------------------------------------------

	def peek(self, offset: int = 0) -> Token | None:
		i = self.index + offset
		if i < len(self.tokens):
			return self.tokens[i]
		return None

	def advance(self) -> Token:
		tok = self.peek()
		if tok is None:
			raise self.error(())
		self.index += 1
		return tok

	def lookahead(self) -> Lookahead:
		return Lookahead(self)

	def expect_punct(self, text: str) -> Token:
		tok = self.peek()
		if tok is None or not tok.is_punct(text):
			raise self.error((f"`{text}`",))
		self.index += 1
		return tok

	def expect_keyword(self, text: str) -> Token:
		tok = self.peek()
		if tok is None or not tok.is_ident(text):
			raise self.error((f"`{text}`",))
		self.index += 1
		return tok

	def error(self, expected: Sequence[str]) -> TemplateSyntaxError:
		tok = self.peek()
		if tok is not None:
			return TemplateSyntaxError(tok.pos, expected, tok.text)
		return TemplateSyntaxError(self._end_pos(), expected, None)

	def _end_pos(self) -> Position:
		if not self.tokens:
			return CALL_SITE
		last = self.tokens[-1]
		newlines = last.text.count("\n")
		if newlines == 0:
			return Position(last.pos.line, last.pos.column + len(last.text))
		tail = last.text[last.text.rfind("\n") + 1 :]
		return Position(last.pos.line + newlines, len(tail) + 1)

	# --- Directives -----------------------------------------------------------

	def parse_config(self) -> Config:
		at = self.expect_punct("@")
		lh = self.lookahead()
		if lh.keyword(DEBUG_PRINT_DIRECTIVE):
			self.advance()
			return DebugPrint(at.pos)
		if lh.keyword(MACRO_PATH_DIRECTIVE):
			self.advance()
			return MacroPath(self.parse_element_path(), at.pos)
		raise lh.error()

	# --- Blocks and statements ------------------------------------------------

	def parse_statements(self, closing: bool) -> tuple[Statement, ...]:
		"""Parse statements up to the closing brace (or the end of input)."""
		statements: list[Statement] = []
		while (tok := self.peek()) is not None:
			if closing and tok.is_punct("}"):
				return tuple(statements)
			statements.append(self.parse_statement())
		if closing:
			raise self.error(("`}`",))
		return tuple(statements)

	def parse_block(self) -> Block:
		brace = self.expect_punct("{")
		statements = self.parse_statements(closing=True)
		self.expect_punct("}")
		return Block(statements, brace.pos)

	def parse_statement(self) -> Statement:
		lh = self.lookahead()
		if lh.keyword("if"):
			return self.parse_if()
		if lh.keyword("match"):
			return self.parse_match()
		if lh.keyword("for"):
			return self.parse_for()
		if lh.keyword("let"):
			return self.parse_let()
		if lh.punct("+"):
			return self.parse_text()
		if lh.element():
			return self.parse_node()
		raise lh.error()

	def parse_if(self) -> If:
		if_ = self.expect_keyword("if")
		cond = self.capture("expression", _stop_at_brace)
		body = self.parse_block()
		else_: Else | None = None
		if (tok := self.peek()) is not None and tok.is_ident("else"):
			self.advance()
			else_ = Else(self.parse_block(), tok.pos)
		return If(cond, body, if_.pos, else_)

	def parse_match(self) -> Match:
		match_ = self.expect_keyword("match")
		scrutinee = self.capture("expression", _stop_at_brace)
		brace = self.expect_punct("{")
		arms: list[Arm] = []
		while (tok := self.peek()) is not None and not tok.is_punct("}"):
			arms.append(self.parse_arm())
		self.expect_punct("}")
		return Match(scrutinee, tuple(arms), match_.pos, brace.pos)

	def parse_arm(self) -> Arm:
		pos = self.next_pos()
		pattern = self.capture_pattern(
			lambda t: t.is_ident("if") or t.is_punct("=>")
		)
		guard: Raw | None = None
		if (tok := self.peek()) is not None and tok.is_ident("if"):
			self.advance()
			guard = self.capture("expression", _stop_at_fat_arrow)
		self.expect_punct("=>")
		body = self.parse_block()
		return Arm(pattern, body, pos, guard)

	def parse_for(self) -> For:
		for_ = self.expect_keyword("for")
		pattern = self.capture_pattern(lambda t: t.is_ident("in"))
		in_ = self.expect_keyword("in")
		iterable = self.capture("expression", _stop_at_brace)
		body = self.parse_block()
		return For(pattern, iterable, body, for_.pos, in_.pos)

	def parse_let(self) -> Let:
		let_ = self.expect_keyword("let")
		pattern = self.capture_pattern(lambda t: t.is_punct("="))
		self.expect_punct("=")
		value = self.capture("expression", _stop_at_semi)
		self.expect_punct(";")
		return Let(pattern, value, let_.pos)

	def parse_text(self) -> Text:
		add = self.expect_punct("+")
		value = self.capture("expression", _stop_at_semi)
		self.expect_punct(";")
		return Text(value, add.pos)

	# --- Nodes ----------------------------------------------------------------

	def parse_node(self) -> Node:
		pos = self.next_pos()
		element = self.parse_element_path()
		args = self.parse_args()
		body = self.parse_body()
		return Node(element, args, body, pos)

	def parse_element_path(self) -> ElementPath:
		"""`::a::b<T>::c` - never consumes a parenthesized group.

		Parentheses after an element belong to its argument list, so call
		syntax is excluded from the path grammar altogether.
		"""
		pos = self.next_pos()
		leading_colon = False
		if (tok := self.peek()) is not None and tok.is_punct("::"):
			self.advance()
			leading_colon = True

		segments: list[PathSegment] = []
		while True:
			tok = self.peek()
			if tok is None or not is_path_ident(tok):
				raise self.error(("identifier",))
			self.advance()
			generics: Raw | None = None
			if (nxt := self.peek()) is not None and nxt.is_punct("<"):
				generics = self.parse_generics()
			segments.append(PathSegment(tok.text, tok.pos, generics))

			if (nxt := self.peek()) is not None and nxt.is_punct("::"):
				self.advance()
			else:
				break
		return ElementPath(tuple(segments), pos, leading_colon)

	def parse_generics(self) -> Raw:
		start = self.index
		angle = 0
		nested = 0
		while True:
			tok = self.peek()
			if tok is None:
				raise self.error(("`>`",))
			if tok.kind == "punct":
				if tok.text in OPEN_DELIMITERS:
					nested += 1
				elif tok.text in CLOSE_DELIMITERS:
					if nested == 0:
						raise self.error(("`>`",))
					nested -= 1
				elif nested == 0 and tok.text == "<":
					angle += 1
				elif nested == 0 and tok.text == ">":
					angle -= 1
			self.advance()
			if angle == 0:
				break
		return Raw(tuple(self.tokens[start : self.index]), self.tokens[start].pos)

	def parse_args(self) -> Arguments:
		lh = self.lookahead()
		if lh.punct("="):
			eq = self.advance()
			return SpreadArgs(self.capture_spread(), eq.pos)
		if lh.punct("("):
			paren = self.advance()
			args: list[Arg] = []
			while True:
				tok = self.peek()
				if tok is not None and tok.is_punct(")"):
					self.advance()
					break
				args.append(self.parse_arg())
				tok = self.peek()
				if tok is not None and tok.is_punct(","):
					self.advance()
				elif tok is not None and tok.is_punct(")"):
					self.advance()
					break
				else:
					raise self.error(("`,`", "`)`"))
			return NamedArgs(tuple(args), paren.pos)
		if lh.punct("{") or lh.punct(";"):
			return NoArgs()
		raise lh.error()

	def parse_arg(self) -> Arg:
		first = self.peek()
		if first is None or first.kind != "ident":
			raise self.error(("identifier",))
		self.advance()
		segments = [first.text]
		while (tok := self.peek()) is not None and tok.is_punct("-"):
			self.advance()
			seg = self.peek()
			if seg is None or seg.kind != "ident":
				raise self.error(("identifier",))
			self.advance()
			segments.append(seg.text)

		if (tok := self.peek()) is not None and tok.is_punct("="):
			self.advance()
			value = self.capture_value()
			return Arg(tuple(segments), first.pos, value, tok.pos)
		return Arg(tuple(segments), first.pos)

	def parse_body(self) -> NodeBody:
		lh = self.lookahead()
		if lh.punct(";"):
			semi = self.advance()
			return SelfClosing(semi.pos)
		if lh.punct("{"):
			return Children(self.parse_block())
		raise lh.error()

	# --- Captured syntax --------------------------------------------------------

	def next_pos(self) -> Position:
		"""Position of the next token, without consuming it."""
		tok = self.peek()
		return tok.pos if tok is not None else self._end_pos()

	def capture(self, what: str, stop: StopFn) -> Raw:
		"""Consume a balanced token run up to a top-level `stop` token.

		A closing delimiter that belongs to an enclosing group also ends the
		run. An empty run is a syntax error naming `what`.
		"""
		start = self.index
		depth = 0
		while (tok := self.peek()) is not None:
			if depth == 0 and stop(tok):
				break
			if tok.kind == "punct":
				if tok.text in OPEN_DELIMITERS:
					depth += 1
				elif tok.text in CLOSE_DELIMITERS:
					if depth == 0:
						break
					depth -= 1
			self.index += 1
		if self.index == start:
			raise self.error((what,))
		return Raw(tuple(self.tokens[start : self.index]), self.tokens[start].pos)

	def capture_value(self) -> Raw:
		"""Capture an argument value up to its top-level `,` or closing `)`.

		Commas inside closure parameters (`|a, b|`) and turbofish generics
		(`::<K, V>`) belong to the value.
		"""
		start = self.index
		depth = 0
		angle = 0
		in_params = False
		prev: Token | None = None
		while (tok := self.peek()) is not None:
			if depth == 0 and angle == 0 and not in_params and tok.is_punct(","):
				break
			if tok.kind == "punct":
				if tok.text in OPEN_DELIMITERS:
					depth += 1
				elif tok.text in CLOSE_DELIMITERS:
					if depth == 0:
						break
					depth -= 1
				elif depth == 0 and angle == 0 and tok.text == "|":
					if in_params or _opens_closure(prev):
						in_params = not in_params
				elif depth == 0 and tok.text == "<":
					if angle > 0 or (prev is not None and prev.is_punct("::")):
						angle += 1
				elif depth == 0 and tok.text == ">" and angle > 0:
					angle -= 1
			prev = tok
			self.index += 1
		if self.index == start:
			raise self.error(("expression",))
		return Raw(tuple(self.tokens[start : self.index]), self.tokens[start].pos)

	def capture_spread(self) -> Raw:
		"""Capture the spread expression after `=`.

		The first top-level `{` normally opens the children block. When it
		directly follows a path and its group is followed by `;`, it is a
		struct literal and belongs to the expression.
		"""
		start = self.index
		expr = self.capture("expression", _stop_at_brace)
		tok = self.peek()
		last = expr.tokens[-1]
		if tok is None or not tok.is_punct("{"):
			return expr
		if last.kind != "ident" and not last.is_punct(">"):
			return expr
		after = self._group_end(self.index) + 1
		if after < len(self.tokens) and self.tokens[after].is_punct(";"):
			self.index = after
			return Raw(tuple(self.tokens[start:after]), expr.pos)
		return expr

	def _group_end(self, index: int) -> int:
		"""Index of the delimiter closing the group opened at `index`."""
		depth = 0
		for i in range(index, len(self.tokens)):
			tok = self.tokens[i]
			if tok.kind != "punct":
				continue
			if tok.text in OPEN_DELIMITERS:
				depth += 1
			elif tok.text in CLOSE_DELIMITERS:
				depth -= 1
				if depth == 0:
					return i
		return len(self.tokens) - 1

	def capture_pattern(self, stop: StopFn) -> Pattern:
		pos = self.next_pos()
		leading_vert = False
		if (tok := self.peek()) is not None and tok.is_punct("|"):
			self.advance()
			leading_vert = True

		alternatives: list[Raw] = []
		while True:
			alternatives.append(
				self.capture("pattern", lambda t: stop(t) or t.is_punct("|"))
			)
			if (tok := self.peek()) is not None and tok.is_punct("|"):
				self.advance()
			else:
				break
		return Pattern(tuple(alternatives), pos, leading_vert)


def parse(tokens: Sequence[Token]) -> Input:
	"""Parse a full invocation: leading directives then the root statements."""
	return Parser(tokens).parse()
