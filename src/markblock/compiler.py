"""
Template syntax tree -> markup node tree.

Each block lowers to one `Markup` node: its leading `let` bindings followed by
a single fragment holding every other statement, in document order.
"""

from __future__ import annotations

import logging

from markblock.config import Settings, resolve_directives
from markblock.errors import OrderingViolation
from markblock.nodes import (
	ChildNode,
	Conditional,
	Element,
	EmptyMarkup,
	Local,
	MapIter,
	Markup,
	MatchArm,
	MatchExpr,
	Prop,
	PropNode,
	SpreadProp,
	TextChild,
)
from markblock.syntax import (
	Arguments,
	Block,
	Children,
	ElementPath,
	For,
	If,
	Input,
	Let,
	Match,
	NamedArgs,
	Node,
	NoArgs,
	SelfClosing,
	SpreadArgs,
	Statement,
	Text,
)

logger = logging.getLogger(__name__)


class Compiler:
	"""Lower template blocks into calls against the `macro_path` entry point."""

	macro_path: ElementPath

	def __init__(self, macro_path: ElementPath) -> None:
		self.macro_path = macro_path

	# --- Blocks ---------------------------------------------------------------

	def compile_block(self, block: Block) -> Markup:
		"""Lower a block to a single fragment-producing `Markup`.

		The leading run of `let` statements is kept, in order, as bindings
		evaluated before any child is built. A `let` after other content is an
		`OrderingViolation`; it is never moved.
		"""
		statements = block.statements
		split = 0
		while split < len(statements) and isinstance(statements[split], Let):
			split += 1

		locals = [
			Local(stmt.pattern, stmt.value, stmt.pos)
			for stmt in statements[:split]
			if isinstance(stmt, Let)
		]

		children = [self.compile_stmt(stmt) for stmt in statements[split:]]
		return Markup(self.macro_path, locals, children, block.pos)

	# --- Statements -------------------------------------------------------------

	def compile_stmt(self, stmt: Statement) -> ChildNode:
		"""Lower one non-leading statement to a child of the enclosing fragment."""
		if isinstance(stmt, Let):
			raise OrderingViolation(stmt.pos)

		if isinstance(stmt, If):
			then = self.compile_block(stmt.body)
			if stmt.else_ is None:
				# The missing branch must still produce a fragment.
				else_: Markup | EmptyMarkup = EmptyMarkup(self.macro_path, stmt.pos)
			else:
				else_ = self.compile_block(stmt.else_.body)
			return Conditional(stmt.cond, then, else_, stmt.pos)

		if isinstance(stmt, Match):
			arms = [
				MatchArm(arm.pattern, arm.guard, self.compile_block(arm.body), arm.body.pos)
				for arm in stmt.arms
			]
			return MatchExpr(stmt.scrutinee, arms, stmt.brace_pos)

		if isinstance(stmt, For):
			body = self.compile_block(stmt.body)
			return MapIter(stmt.pattern, stmt.iterable, body, stmt.in_pos)

		if isinstance(stmt, Text):
			return TextChild(stmt.value, stmt.pos)

		if isinstance(stmt, Node):
			return self.compile_node(stmt)

		raise TypeError(f"Unknown statement: {type(stmt).__name__}")

	def compile_node(self, node: Node) -> Element:
		props = self.compile_args(node.args)
		body = node.body
		if isinstance(body, SelfClosing):
			return Element(node.element, props, None, body.pos)
		if isinstance(body, Children):
			children = self.compile_block(body.block)
			return Element(node.element, props, children, body.block.pos)
		raise TypeError(f"Unknown node body: {type(body).__name__}")

	def compile_args(self, args: Arguments) -> list[PropNode]:
		"""Lower arguments to props, preserving their written order."""
		if isinstance(args, NoArgs):
			return []
		if isinstance(args, SpreadArgs):
			return [SpreadProp(args.expr, args.pos)]
		if isinstance(args, NamedArgs):
			props: list[PropNode] = []
			for arg in args.args:
				if arg.value is None:
					props.append(Prop(arg.name, None, arg.pos))
				else:
					props.append(Prop(arg.name, arg.value, arg.eq_pos or arg.pos))
			return props
		raise TypeError(f"Unknown arguments: {type(args).__name__}")


def compile_input(
	input: Input, settings: Settings | None = None
) -> tuple[Markup, Settings]:
	"""Resolve the invocation's directives and compile its root block.

	`settings` is the base the directives are applied on top of. Returns the
	root markup together with the resolved settings.
	"""
	resolved = resolve_directives(input.configs, settings)
	markup = Compiler(resolved.macro_path).compile_block(input.root)
	logger.debug(
		"compiled %d binding(s) and %d child node(s) via %s",
		len(markup.locals),
		len(markup.children),
		resolved.macro_path,
	)
	return markup, resolved
