from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TypeAlias, override

from markblock.errors import Position
from markblock.syntax import ElementPath, Pattern, Raw

INTO_ITER = "::std::iter::IntoIterator::into_iter"


# =============================================================================
# Base classes
# =============================================================================
class Node(ABC):
	"""Base class for generated markup nodes.

	Every node records the position of the template construct it was lowered
	from, so errors raised against the generated code point back at the
	template.
	"""

	__slots__: tuple[str, ...] = ()
	pos: Position

	@abstractmethod
	def emit(self, out: list[str]) -> None:
		"""Emit this node as markup-builder code into the output buffer."""

	def iter_children(self) -> Iterator[Node]:
		"""Direct child nodes, in emission order."""
		return iter(())


class ChildNode(Node, ABC):
	"""A node that can appear as a child of a fragment."""

	__slots__: tuple[str, ...] = ()


# =============================================================================
# Fragments
# =============================================================================


@dataclass(slots=True)
class Local(Node):
	"""A leading `let` binding, evaluated before any child is built."""

	pattern: Pattern
	value: Raw
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append("let ")
		out.append(self.pattern.text)
		out.append(" = ")
		out.append(self.value.text)
		out.append(";")


@dataclass(slots=True)
class Markup(Node):
	"""One compiled block: its bindings, then a fragment built by the entry point.

	`let a = 1; path! { <> child child </> }`
	"""

	macro_path: ElementPath
	locals: Sequence[Local]
	children: Sequence[ChildNode]
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		for local in self.locals:
			local.emit(out)
			out.append(" ")
		out.append(self.macro_path.text)
		out.append("! { <>")
		for child in self.children:
			out.append(" ")
			child.emit(out)
		out.append(" </> }")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield from self.locals
		yield from self.children


@dataclass(slots=True)
class EmptyMarkup(Node):
	"""An explicitly empty fragment: `path! {}`."""

	macro_path: ElementPath
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.macro_path.text)
		out.append("! {}")


# =============================================================================
# Elements and props
# =============================================================================


@dataclass(slots=True)
class Prop(Node):
	"""`name={value}`; a shorthand prop (no value) refers to the binding `name`."""

	name: str
	value: Raw | None
	pos: Position

	@property
	def value_text(self) -> str:
		return self.name if self.value is None else self.value.text

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.name)
		out.append("={")
		out.append(self.value_text)
		out.append("}")


@dataclass(slots=True)
class SpreadProp(Node):
	"""`..expr`: take every prop from `expr`."""

	expr: Raw
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append("..")
		out.append(self.expr.text)


PropNode: TypeAlias = Prop | SpreadProp


@dataclass(slots=True)
class Element(ChildNode):
	"""A tagged element.

	Without `children` the element is self-closing; otherwise the compiled
	block is its sole child.
	"""

	tag: ElementPath
	props: Sequence[PropNode]
	children: Markup | None
	pos: Position

	@property
	def self_closing(self) -> bool:
		return self.children is None

	@override
	def emit(self, out: list[str]) -> None:
		out.append("<")
		out.append(self.tag.text)
		for prop in self.props:
			out.append(" ")
			prop.emit(out)
		if self.children is None:
			out.append(" />")
			return
		out.append(">{ ")
		self.children.emit(out)
		out.append(" }</")
		out.append(self.tag.text)
		out.append(">")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield from self.props
		if self.children is not None:
			yield self.children


@dataclass(slots=True)
class TextChild(ChildNode):
	"""An expression interpolated as text: `{ expr }`."""

	expr: Raw
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append("{ ")
		out.append(self.expr.text)
		out.append(" }")


# =============================================================================
# Control flow
# =============================================================================


@dataclass(slots=True)
class Conditional(ChildNode):
	"""`{ if cond { … } else { … } }`; both branches produce a fragment."""

	cond: Raw
	then: Markup
	else_: Markup | EmptyMarkup
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append("{ if ")
		out.append(self.cond.text)
		out.append(" { ")
		self.then.emit(out)
		out.append(" } else { ")
		self.else_.emit(out)
		out.append(" } }")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield self.then
		yield self.else_


@dataclass(slots=True)
class MatchArm(Node):
	pattern: Pattern
	guard: Raw | None
	body: Markup
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.pattern.text)
		if self.guard is not None:
			out.append(" if ")
			out.append(self.guard.text)
		out.append(" => { ")
		self.body.emit(out)
		out.append(" }")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield self.body


@dataclass(slots=True)
class MatchExpr(ChildNode):
	"""`{ match x { arm arm } }`; arms keep their written order."""

	scrutinee: Raw
	arms: Sequence[MatchArm]
	pos: Position

	@override
	def emit(self, out: list[str]) -> None:
		out.append("{ match ")
		out.append(self.scrutinee.text)
		out.append(" {")
		for arm in self.arms:
			out.append(" ")
			arm.emit(out)
		out.append(" } }")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield from self.arms


@dataclass(slots=True)
class MapIter(ChildNode):
	"""A lazy per-element mapping over the iterable, used as a child sequence.

	`{ for ::std::iter::IntoIterator::into_iter(xs).map(|x| { … }) }`; the `for`
	marker makes the builder take the iterator as a sequence of children.
	"""

	pattern: Pattern
	iterable: Raw
	body: Markup
	pos: Position

	@property
	def param_text(self) -> str:
		# Closure parameters cannot carry a bare or-pattern.
		if len(self.pattern.alternatives) == 1 and not self.pattern.leading_vert:
			return self.pattern.text
		return "(" + " | ".join(a.text for a in self.pattern.alternatives) + ")"

	@override
	def emit(self, out: list[str]) -> None:
		out.append("{ for ")
		out.append(INTO_ITER)
		out.append("(")
		out.append(self.iterable.text)
		out.append(").map(|")
		out.append(self.param_text)
		out.append("| { ")
		self.body.emit(out)
		out.append(" }) }")

	@override
	def iter_children(self) -> Iterator[Node]:
		yield self.body


# =============================================================================
# Emit logic
# =============================================================================


def emit(node: Node) -> str:
	"""Emit a node as markup-builder code."""
	out: list[str] = []
	node.emit(out)
	return "".join(out)


def walk(node: Node) -> Iterator[Node]:
	"""Yield `node` and all of its descendants, depth-first in emission order."""
	yield node
	for child in node.iter_children():
		yield from walk(child)
