"""
Source text -> token stream.

The parser only needs a sequence of `Token`; this lexer is the front-end used
by `translate()` and the CLI. Embedders that already hold tokens (for example
from another tokenizer) can build `Token` values directly.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal, TypeAlias

from markblock.errors import Position, TemplateSyntaxError

TokenKind: TypeAlias = Literal["ident", "literal", "lifetime", "punct"]

OPEN_DELIMITERS = {"(": ")", "[": "]", "{": "}"}
CLOSE_DELIMITERS = {v: k for k, v in OPEN_DELIMITERS.items()}


@dataclass(frozen=True, slots=True)
class Token:
	"""A single lexical token.

	`spaced` records whether whitespace (or a comment) preceded the token in
	the source. It only matters when captured syntax is written back out.
	"""

	kind: TokenKind
	text: str
	pos: Position
	spaced: bool = False

	def is_punct(self, text: str) -> bool:
		return self.kind == "punct" and self.text == text

	def is_ident(self, text: str | None = None) -> bool:
		return self.kind == "ident" and (text is None or self.text == text)

	def __str__(self) -> str:
		return self.text


# `>` is never merged so that nested generics like `Vec<Vec<u8>>` close one
# level per token; the same goes for `<<`.
_PUNCT = (
	r"\.\.=|\.\.\.|::|->|=>|==|!=|<=|&&|\|\||\.\.|\+=|-=|\*=|/=|%=|\^=|&=|\|="
	+ r"|[!#$%&*+,\-./:;<=>?@^|~()\[\]{}]"
)

TOKEN_SPEC: list[tuple[str, str]] = [
	("SKIP", r"\s+"),
	("LINE_COMMENT", r"//[^\n]*"),
	("BLOCK_COMMENT", r"/\*[\s\S]*?\*/"),
	("RAW_STRING", r'b?r(?P<hashes>#*)"[\s\S]*?"(?P=hashes)'),
	("STRING", r'b?"(?:\\[\s\S]|[^"\\])*"'),
	("CHAR", r"b?'(?:\\u\{[0-9a-fA-F]+\}|\\.|[^'\\\n])'"),
	("LIFETIME", r"'[^\W\d]\w*"),
	("NUMBER", r"\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d[\d_]*)?(?:[^\W\d]\w*)?"),
	("IDENT", r"(?:r#)?[^\W\d]\w*"),
	("PUNCT", _PUNCT),
	("MISMATCH", r"."),
]

TOKEN_RE = re.compile(
	"|".join(f"(?P<{name}>{pat})" for name, pat in TOKEN_SPEC), re.DOTALL
)

_KINDS: dict[str, TokenKind] = {
	"RAW_STRING": "literal",
	"STRING": "literal",
	"CHAR": "literal",
	"NUMBER": "literal",
	"LIFETIME": "lifetime",
	"IDENT": "ident",
	"PUNCT": "punct",
}


class _LineIndex:
	"""Maps string offsets to 1-based line/column positions."""

	__slots__: tuple[str, ...] = ("starts",)
	starts: list[int]

	def __init__(self, source: str) -> None:
		self.starts = [0]
		for m in re.finditer(r"\n", source):
			self.starts.append(m.end())

	def position(self, offset: int) -> Position:
		line = bisect.bisect_right(self.starts, offset) - 1
		return Position(line + 1, offset - self.starts[line] + 1)


def iter_tokens(source: str) -> Iterator[Token]:
	"""Yield tokens without checking delimiter balance."""
	index = _LineIndex(source)
	spaced = False
	for m in TOKEN_RE.finditer(source):
		group = m.lastgroup or "MISMATCH"
		text = m.group()
		if group in ("SKIP", "LINE_COMMENT", "BLOCK_COMMENT"):
			spaced = True
			continue
		pos = index.position(m.start())
		if group == "MISMATCH":
			if text in ('"', "'"):
				raise TemplateSyntaxError(
					pos, message=f"unterminated literal starting with {text}"
				)
			raise TemplateSyntaxError(pos, message=f"unexpected character {text!r}")
		yield Token(_KINDS[group], text, pos, spaced)
		spaced = False


def tokenize(source: str) -> list[Token]:
	"""Lex `source` into tokens, checking that delimiters are balanced."""
	tokens: list[Token] = []
	stack: list[Token] = []
	for tok in iter_tokens(source):
		if tok.kind == "punct":
			if tok.text in OPEN_DELIMITERS:
				stack.append(tok)
			elif tok.text in CLOSE_DELIMITERS:
				if not stack:
					raise TemplateSyntaxError(
						tok.pos, message=f"unexpected closing delimiter `{tok.text}`"
					)
				opener = stack.pop()
				if OPEN_DELIMITERS[opener.text] != tok.text:
					raise TemplateSyntaxError(
						tok.pos,
						expected=(f"`{OPEN_DELIMITERS[opener.text]}`",),
						found=tok.text,
					)
		tokens.append(tok)
	if stack:
		opener = stack[-1]
		raise TemplateSyntaxError(
			opener.pos, message=f"unclosed delimiter `{opener.text}`"
		)
	return tokens
