"""Translator settings and the resolution of in-template directives."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from markblock.errors import CALL_SITE
from markblock.lexer import tokenize
from markblock.parser import Parser
from markblock.syntax import Config, DebugPrint, ElementPath, MacroPath, PathSegment


def parse_path(text: str) -> ElementPath:
	"""Parse a qualified name such as `::yew::html`."""
	return Parser(tokenize(text)).parse_path_only()


DEFAULT_MACRO_PATH = ElementPath(
	(PathSegment("yew", CALL_SITE), PathSegment("html", CALL_SITE)),
	CALL_SITE,
	leading_colon=True,
)


@dataclass(frozen=True, slots=True)
class Settings:
	"""Resolved translator settings.

	macro_path: entry point invoked to build every fragment.
	debug_print: print the generated output after a successful translation.
	"""

	macro_path: ElementPath = DEFAULT_MACRO_PATH
	debug_print: bool = False

	def with_overrides(
		self,
		macro_path: ElementPath | str | None = None,
		debug_print: bool | None = None,
	) -> Settings:
		"""Return a copy with the given settings replaced; `None` keeps the current one."""
		updated = self
		if macro_path is not None:
			if isinstance(macro_path, str):
				macro_path = parse_path(macro_path)
			updated = replace(updated, macro_path=macro_path)
		if debug_print is not None:
			updated = replace(updated, debug_print=debug_print)
		return updated


def resolve_directives(
	configs: Iterable[Config], base: Settings | None = None
) -> Settings:
	"""Apply directives in order on top of `base`; the last one of a kind wins."""
	settings = base if base is not None else Settings()
	for config in configs:
		if isinstance(config, DebugPrint):
			settings = replace(settings, debug_print=True)
		elif isinstance(config, MacroPath):
			settings = replace(settings, macro_path=config.path)
	return settings
