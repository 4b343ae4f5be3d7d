"""Compile HTML-like template blocks into markup-builder calls."""

# Errors
from markblock.errors import OrderingViolation as OrderingViolation
from markblock.errors import Position as Position
from markblock.errors import TemplateError as TemplateError
from markblock.errors import TemplateSyntaxError as TemplateSyntaxError

# Front-end
from markblock.lexer import Token as Token
from markblock.lexer import tokenize as tokenize
from markblock.parser import Parser as Parser
from markblock.parser import parse as parse

# Compiler
from markblock.compiler import Compiler as Compiler
from markblock.compiler import compile_input as compile_input
from markblock.config import DEFAULT_MACRO_PATH as DEFAULT_MACRO_PATH
from markblock.config import Settings as Settings
from markblock.config import parse_path as parse_path
from markblock.config import resolve_directives as resolve_directives

# Output nodes
from markblock.nodes import Markup as Markup
from markblock.nodes import emit as emit
from markblock.nodes import walk as walk

# Entry points
from markblock.translate import compile_source as compile_source
from markblock.translate import expand as expand
from markblock.translate import translate as translate
