"""
Tests for template syntax tree -> markup node tree, and the emitted code.

This module covers:
- Block lowering and the leading-`let` rule
- Conditionals, matches and loops
- Elements, props, spread and shorthand arguments
- Source positions carried by the generated nodes
"""

import pytest
from markblock.compiler import Compiler, compile_input
from markblock.config import DEFAULT_MACRO_PATH, Settings, parse_path
from markblock.errors import OrderingViolation, Position
from markblock.lexer import tokenize
from markblock.nodes import (
	Conditional,
	Element,
	EmptyMarkup,
	Local,
	MapIter,
	Markup,
	MatchExpr,
	Prop,
	SpreadProp,
	TextChild,
	emit,
	walk,
)
from markblock.parser import parse

HTML = "::yew::html"


def compile_text(source: str) -> Markup:
	markup, _ = compile_input(parse(tokenize(source)))
	return markup


def code(source: str) -> str:
	return emit(compile_text(source))


# =============================================================================
# Blocks
# =============================================================================


class TestBlocks:
	def test_empty(self):
		assert code("") == f"{HTML}! {{ <> </> }}"

	def test_heading_with_text(self):
		assert code('h1 { + "Hi"; }') == (
			f'{HTML}! {{ <> <h1>{{ {HTML}! {{ <> {{ "Hi" }} </> }} }}</h1> </> }}'
		)

	def test_children_keep_document_order(self):
		markup = compile_text("h1; + x; h2;")
		kinds = [type(child) for child in markup.children]
		assert kinds == [Element, TextChild, Element]
		assert [emit(child) for child in markup.children] == [
			"<h1 />",
			"{ x }",
			"<h2 />",
		]

	def test_leading_lets_become_bindings(self):
		assert code("let x = 1; let y = x + 1; + y;") == (
			f"let x = 1; let y = x + 1; {HTML}! {{ <> {{ y }} </> }}"
		)

	@pytest.mark.parametrize(
		"source,count",
		[
			("br;", 0),
			("let a = 1; br;", 1),
			("let a = 1; let b = 2; let c = 3;", 3),
			("let a = 1; let b = 2; if a { let c = 3; }", 2),
		],
	)
	def test_binding_count_matches_leading_lets(self, source: str, count: int):
		markup = compile_text(source)
		assert len(markup.locals) == count
		assert all(isinstance(local, Local) for local in markup.locals)

	def test_nested_block_bindings(self):
		assert code("div { let y = a + b; + y; }") == (
			f"{HTML}! {{ <> <div>{{ let y = a + b; {HTML}! {{ <> {{ y }} </> }} }}</div> </> }}"
		)


class TestOrdering:
	def test_let_after_content(self):
		with pytest.raises(OrderingViolation) as info:
			compile_text("br; let x = 1;")
		assert info.value.pos == Position(1, 5)
		assert info.value.message == (
			"let statements must precede all other statements in a block"
		)

	def test_let_after_content_in_nested_block(self):
		with pytest.raises(OrderingViolation) as info:
			compile_text("div {\n  let a = 1;\n  + a;\n  let b = 2;\n}")
		assert info.value.pos == Position(4, 3)

	def test_first_misplaced_let_is_reported(self):
		with pytest.raises(OrderingViolation) as info:
			compile_text("let a = 1; br; let b = 2; let c = 3;")
		assert info.value.pos == Position(1, 16)

	def test_let_is_never_hoisted(self):
		# Wrapping in `if true {}` is the supported way to bind later.
		markup = compile_text("br; if true { let x = 1; + x; }")
		cond = markup.children[1]
		assert isinstance(cond, Conditional)
		assert len(cond.then.locals) == 1


# =============================================================================
# Control flow
# =============================================================================


class TestConditionals:
	def test_if_without_else_yields_empty_fragment(self):
		assert code('if cond { + "a"; }') == (
			f'{HTML}! {{ <> {{ if cond {{ {HTML}! {{ <> {{ "a" }} </> }} }} '
			+ f"else {{ {HTML}! {{}} }} }} </> }}"
		)

	def test_missing_else_is_explicit(self):
		cond = compile_text("if a { br; }").children[0]
		assert isinstance(cond, Conditional)
		assert isinstance(cond.else_, EmptyMarkup)
		assert cond.else_.macro_path == DEFAULT_MACRO_PATH

	def test_if_else(self):
		cond = compile_text("if a { br; } else { hr; }").children[0]
		assert emit(cond) == (
			f"{{ if a {{ {HTML}! {{ <> <br /> </> }} }} "
			+ f"else {{ {HTML}! {{ <> <hr /> </> }} }} }}"
		)


class TestMatch:
	def test_alternation_arm(self):
		node = compile_text("match v { A | B => { foo; } }").children[0]
		assert isinstance(node, MatchExpr)
		(arm,) = node.arms
		assert [alt.text for alt in arm.pattern.alternatives] == ["A", "B"]
		assert emit(node) == f"{{ match v {{ A | B => {{ {HTML}! {{ <> <foo /> </> }} }} }} }}"

	def test_guard_and_order(self):
		node = compile_text(
			"match n { Some(i) if i > 3 => { + i; } Some(_) => { br; } _ => {} }"
		).children[0]
		assert isinstance(node, MatchExpr)
		assert [arm.pattern.text for arm in node.arms] == ["Some(i)", "Some(_)", "_"]
		assert emit(node) == (
			f"{{ match n {{ Some(i) if i > 3 => {{ {HTML}! {{ <> {{ i }} </> }} }} "
			+ f"Some(_) => {{ {HTML}! {{ <> <br /> </> }} }} "
			+ f"_ => {{ {HTML}! {{ <> </> }} }} }} }}"
		)

	def test_arm_bodies_support_full_grammar(self):
		node = compile_text(
			"match v { A => { let x = 1; for y in x { + y; } } }"
		).children[0]
		assert isinstance(node, MatchExpr)
		body = node.arms[0].body
		assert len(body.locals) == 1
		assert isinstance(body.children[0], MapIter)


class TestFor:
	def test_lazy_mapping(self):
		node = compile_text("for x in xs { + x; }").children[0]
		assert isinstance(node, MapIter)
		assert emit(node) == (
			"{ for ::std::iter::IntoIterator::into_iter(xs)"
			+ f".map(|x| {{ {HTML}! {{ <> {{ x }} </> }} }}) }}"
		)

	def test_tuple_pattern(self):
		node = compile_text("for (i, x) in xs.iter().enumerate() {}").children[0]
		assert isinstance(node, MapIter)
		assert ".map(|(i, x)|" in emit(node)
		assert "into_iter(xs.iter().enumerate())" in emit(node)

	def test_or_pattern_is_parenthesized(self):
		node = compile_text("for A | B in xs {}").children[0]
		assert isinstance(node, MapIter)
		assert ".map(|(A | B)|" in emit(node)

	def test_child_sequence_inside_element(self):
		output = code("ul { for x in xs { + x; } }")
		assert (
			f"<ul>{{ {HTML}! {{ <> {{ for ::std::iter::IntoIterator::into_iter(xs)"
			in output
		)


# =============================================================================
# Elements
# =============================================================================


class TestElements:
	def test_self_closing(self):
		node = compile_text("br;").children[0]
		assert isinstance(node, Element)
		assert node.self_closing
		assert emit(node) == "<br />"

	def test_children_are_one_fragment(self):
		node = compile_text("ul { li; li; }").children[0]
		assert isinstance(node, Element)
		assert isinstance(node.children, Markup)
		assert len(node.children.children) == 2
		assert emit(node) == f"<ul>{{ {HTML}! {{ <> <li /> <li /> </> }} }}</ul>"

	def test_keyword_attribute(self):
		assert emit(compile_text('input(type = "checkbox");').children[0]) == (
			'<input type={"checkbox"} />'
		)

	def test_hyphenated_attribute(self):
		node = compile_text("li(data-length = n.to_string()) { + n; }").children[0]
		assert emit(node) == (
			f"<li data-length={{n.to_string()}}>{{ {HTML}! {{ <> {{ n }} </> }} }}</li>"
		)

	def test_argument_order(self):
		node = compile_text("a(b = 1, a = 2);").children[0]
		assert isinstance(node, Element)
		assert [p.name for p in node.props if isinstance(p, Prop)] == ["b", "a"]
		assert emit(node) == "<a b={1} a={2} />"

	def test_shorthand_refers_to_same_name(self):
		node = compile_text("img(src, alt = label);").children[0]
		assert isinstance(node, Element)
		src = node.props[0]
		assert isinstance(src, Prop)
		assert src.value is None
		assert src.value_text == "src"
		assert emit(node) == "<img src={src} alt={label} />"

	def test_spread(self):
		node = compile_text("Card = props.clone() { + title; }").children[0]
		assert isinstance(node, Element)
		(prop,) = node.props
		assert isinstance(prop, SpreadProp)
		assert emit(node).startswith("<Card ..props.clone()>")
		assert emit(node).endswith("</Card>")

	def test_spread_struct_literal(self):
		node = compile_text("Card = Props { title: t };").children[0]
		assert emit(node) == "<Card ..Props { title: t } />"

	def test_closure_prop(self):
		node = compile_text("button(onclick = move |a, b| a + b);").children[0]
		assert emit(node) == "<button onclick={move |a, b| a + b} />"

	def test_qualified_tag(self):
		node = compile_text("::ui::Card<T> {}").children[0]
		assert emit(node) == f"<::ui::Card<T>>{{ {HTML}! {{ <> </> }} }}</::ui::Card<T>>"


# =============================================================================
# Directives and entry points
# =============================================================================


class TestEntryPoint:
	def test_alternate_macro_path(self):
		assert code("@macro_path ::my::html br;") == "::my::html! { <> <br /> </> }"

	def test_alternate_path_reaches_nested_fragments(self):
		markup = compile_text("@macro_path m if a { br; }")
		assert emit(markup) == "m! { <> { if a { m! { <> <br /> </> } } else { m! {} } } </> }"

	def test_base_settings(self):
		markup, settings = compile_input(
			parse(tokenize("br;")), Settings(macro_path=parse_path("alt::html"))
		)
		assert settings.macro_path.text == "alt::html"
		assert emit(markup) == "alt::html! { <> <br /> </> }"

	def test_compiler_directly(self):
		root = parse(tokenize("br;")).root
		markup = Compiler(parse_path("h")).compile_block(root)
		assert emit(markup) == "h! { <> <br /> </> }"


# =============================================================================
# Positions
# =============================================================================


class TestPositions:
	def test_element_and_text(self):
		markup = compile_text("div {\n    + x;\n}")
		assert markup.pos == Position(1, 1)
		element = markup.children[0]
		assert isinstance(element, Element)
		assert element.pos == Position(1, 5)
		assert element.children is not None
		text = element.children.children[0]
		assert isinstance(text, TextChild)
		assert text.pos == Position(2, 5)

	def test_self_closing_at_semicolon(self):
		assert compile_text("br;").children[0].pos == Position(1, 3)

	def test_control_flow(self):
		markup = compile_text(
			"if a {}\nfor x in xs {}\nmatch v {\n  _ => {}\n}"
		)
		cond, loop, match = markup.children
		assert cond.pos == Position(1, 1)
		assert isinstance(cond, Conditional)
		assert cond.else_.pos == Position(1, 1)
		assert loop.pos == Position(2, 7)
		assert match.pos == Position(3, 9)
		assert isinstance(match, MatchExpr)
		assert match.arms[0].pos == Position(4, 8)

	def test_props(self):
		node = compile_text("a(x = 1, y);").children[0]
		assert isinstance(node, Element)
		assert [p.pos for p in node.props] == [Position(1, 5), Position(1, 10)]

	def test_locals(self):
		markup = compile_text("let a = 1;\nlet b = 2;")
		assert [local.pos for local in markup.locals] == [
			Position(1, 1),
			Position(2, 1),
		]

	def test_every_node_has_a_position(self):
		markup = compile_text(
			"let a = 1; ul(class) { for x in xs { li = p { + x; } } if a {} }"
		)
		nodes = list(walk(markup))
		assert len(nodes) > 5
		assert all(isinstance(node.pos, Position) for node in nodes)
