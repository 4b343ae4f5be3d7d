"""
Tests for source text -> token stream.
"""

import pytest
from markblock.errors import Position, TemplateSyntaxError
from markblock.lexer import Token, tokenize
from markblock.syntax import render_tokens


def texts(source: str) -> list[str]:
	return [tok.text for tok in tokenize(source)]


class TestTokens:
	def test_kinds(self):
		toks = tokenize("div(a = 'x', b = 1.5) 'life")
		assert [t.kind for t in toks] == [
			"ident",
			"punct",
			"ident",
			"punct",
			"literal",
			"punct",
			"ident",
			"punct",
			"literal",
			"punct",
			"lifetime",
		]

	def test_multi_char_punct(self):
		assert texts("a::b => c == d != e <= f && g || h .. i ..= j") == [
			"a",
			"::",
			"b",
			"=>",
			"c",
			"==",
			"d",
			"!=",
			"e",
			"<=",
			"f",
			"&&",
			"g",
			"||",
			"h",
			"..",
			"i",
			"..=",
			"j",
		]

	def test_closing_angles_are_not_merged(self):
		assert texts("Vec<Vec<u8>>") == ["Vec", "<", "Vec", "<", "u8", ">", ">"]
		assert texts("a >= b") == ["a", ">", "=", "b"]

	def test_hyphenated_names_split(self):
		assert texts("data-length") == ["data", "-", "length"]

	def test_raw_identifier(self):
		toks = tokenize("r#type")
		assert len(toks) == 1
		assert toks[0].kind == "ident"
		assert toks[0].text == "r#type"

	def test_underscore_is_ident(self):
		assert tokenize("_")[0].kind == "ident"


class TestLiterals:
	def test_string_with_escapes(self):
		toks = tokenize(r'"say \"hi\""')
		assert len(toks) == 1
		assert toks[0].text == r'"say \"hi\""'

	def test_raw_string(self):
		toks = tokenize('r#"has "quotes" inside"#')
		assert len(toks) == 1
		assert toks[0].kind == "literal"

	def test_byte_string(self):
		assert texts('b"bytes"') == ['b"bytes"']

	def test_char_and_lifetime(self):
		toks = tokenize("'a' 'b")
		assert [(t.kind, t.text) for t in toks] == [
			("literal", "'a'"),
			("lifetime", "'b"),
		]

	def test_number_suffix(self):
		assert texts("1u32 2.5f64 1_000") == ["1u32", "2.5f64", "1_000"]

	def test_range_is_not_a_float(self):
		assert texts("0..10") == ["0", "..", "10"]


class TestTrivia:
	def test_comments_are_skipped(self):
		assert texts("a // line\n/* block\n comment */ b") == ["a", "b"]

	def test_spacing_is_recorded(self):
		toks = tokenize("a b.c")
		assert [t.spaced for t in toks] == [False, True, False, False]

	def test_comment_counts_as_space(self):
		toks = tokenize("a/* */b")
		assert toks[1].spaced

	def test_positions(self):
		toks = tokenize("div {\n  + x;\n}")
		assert toks[0].pos == Position(1, 1)
		assert toks[1].pos == Position(1, 5)
		assert toks[2].pos == Position(2, 3)
		assert toks[3].pos == Position(2, 5)
		assert toks[-1].pos == Position(3, 1)


class TestErrors:
	def test_mismatched_delimiter(self):
		with pytest.raises(TemplateSyntaxError) as info:
			tokenize("(]")
		assert info.value.expected == ("`)`",)
		assert info.value.found == "]"
		assert info.value.pos == Position(1, 2)

	def test_unclosed_delimiter(self):
		with pytest.raises(TemplateSyntaxError) as info:
			tokenize("div {")
		assert info.value.pos == Position(1, 5)
		assert "unclosed delimiter" in info.value.message

	def test_stray_closing_delimiter(self):
		with pytest.raises(TemplateSyntaxError, match="unexpected closing"):
			tokenize("}")

	def test_unterminated_string(self):
		with pytest.raises(TemplateSyntaxError, match="unterminated"):
			tokenize('+ "abc;')

	def test_unknown_character(self):
		with pytest.raises(TemplateSyntaxError, match="unexpected character"):
			tokenize("a \\ b")


class TestRender:
	def test_round_trip_keeps_spacing(self):
		source = "field.len().to_string()"
		assert render_tokens(tokenize(source)) == source

	def test_spaces_preserved_where_present(self):
		assert render_tokens(tokenize("a  +   b")) == "a + b"

	def test_word_tokens_never_fuse(self):
		pos = Position(1, 1)
		toks = [
			Token("ident", "a", pos),
			Token("ident", "as", pos),
			Token("ident", "u32", pos),
		]
		assert render_tokens(toks) == "a as u32"
