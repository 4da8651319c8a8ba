"""Generic document AST and the bundled block-level Markdown reader."""

from docloom.markup.ast import Node, NodeKind, failure, text_node
from docloom.markup.reader import MarkdownReader, MarkupParser, parse_inline, split_info

__all__ = ["MarkdownReader", "MarkupParser", "Node", "NodeKind", "failure", "parse_inline", "split_info", "text_node"]
