"""JavaScript and TypeScript span extraction using tree-sitter.

Parses JS/JSX/TS/TSX source and collects one Span for each named
function declaration, arrow function bound to a variable declarator,
class method and object-literal method.
"""

import logging
from pathlib import Path
from typing import Callable, Iterator, Optional

import tree_sitter
import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts

from autoscribe.errors import ParseError
from autoscribe.parsers.structure import Language, Span, SpanKind

logger = logging.getLogger(__name__)

_LANGUAGES = {
    Language.JAVASCRIPT: tree_sitter.Language(tsjs.language()),
    Language.TYPESCRIPT: tree_sitter.Language(tsts.language_typescript()),
    Language.TSX: tree_sitter.Language(tsts.language_tsx()),
}

_FUNC_TYPES = {
    "function_declaration",
    "generator_function_declaration",
}
_DECLARATION_TYPES = {
    "lexical_declaration",
    "variable_declaration",
}
_METHOD_PARENTS = {
    "class_body": SpanKind.CLASS_METHOD,
    "object": SpanKind.OBJECT_METHOD,
}


def parse(source: str, language: Language = Language.JAVASCRIPT) -> tree_sitter.Tree:
    """Parse source text into a tree-sitter syntax tree.

    Args:
        source: Source code to parse.
        language: Grammar to parse with.

    Returns:
        The parsed tree. It may contain error nodes; callers decide
        whether that is fatal.
    """
    parser = tree_sitter.Parser(_LANGUAGES[language])
    return parser.parse(source.encode("utf-8"))


def read_source(path: str | Path) -> str:
    """Read a source file as UTF-8 text.

    Raises:
        ParseError: If the file is not valid UTF-8.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Not valid UTF-8: {e}", str(path)) from e


def for_each_node(
    tree: tree_sitter.Tree, visitor: Callable[[tree_sitter.Node], None]
) -> None:
    """Call visitor on every node of the tree in pre-order."""
    for node in _walk(tree.root_node):
        visitor(node)


def _walk(root: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


class SpanExtractor:
    """Extracts documentable spans from JavaScript and TypeScript source."""

    def parse_file(self, file_path: str) -> list[Span]:
        """Read and parse a source file, returning its function spans.

        The grammar is chosen from the file suffix.

        Args:
            file_path: Path to the JS/TS file to parse.

        Returns:
            Spans sorted by start offset.

        Raises:
            FileNotFoundError: If the file does not exist.
            ParseError: If the file is not valid UTF-8 or contains syntax
                errors.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        source = read_source(path)
        return self.extract_spans(source, file_path, Language.from_path(path))

    def extract_spans(
        self,
        source: str,
        file_path: str = "<string>",
        language: Language = Language.JAVASCRIPT,
    ) -> list[Span]:
        """Parse a source string and collect its function spans.

        JavaScript that the plain grammar rejects is parsed again with
        the TSX grammar, so type annotations in .js files are accepted.

        Args:
            source: JavaScript or TypeScript source code.
            file_path: Optional file path, used in error messages.
            language: Grammar to parse with.

        Returns:
            Spans sorted by start offset.

        Raises:
            ParseError: If the source contains syntax errors. Nothing is
                extracted from a file that does not parse cleanly.
        """
        tree = parse(source, language)
        source_bytes = source.encode("utf-8")

        if tree.root_node.has_error and language == Language.JAVASCRIPT:
            typed_tree = parse(source, Language.TSX)
            if not typed_tree.root_node.has_error:
                logger.debug("Parsed %s with the TSX grammar", file_path)
                tree = typed_tree

        if tree.root_node.has_error:
            message = self._describe_error(tree.root_node, source_bytes)
            raise ParseError(message, file_path)

        to_offset = self._offset_converter(source, source_bytes)
        spans: list[Span] = []

        def visit(node: tree_sitter.Node) -> None:
            found = self._match(node, source_bytes)
            if found is None:
                return
            name, kind, anchor = found
            start = to_offset(anchor.start_byte)
            end = to_offset(anchor.end_byte)
            spans.append(
                Span(
                    name=name,
                    kind=kind,
                    source_text=source[start:end],
                    start_offset=start,
                    end_offset=end,
                    line_number=anchor.start_point.row + 1,
                )
            )

        for_each_node(tree, visit)
        spans.sort(key=lambda s: s.start_offset)

        logger.debug("Extracted %d spans from %s", len(spans), file_path)
        return spans

    def _match(
        self, node: tree_sitter.Node, source_bytes: bytes
    ) -> Optional[tuple[str, SpanKind, tree_sitter.Node]]:
        """Match a node against the four documentable constructs.

        Returns:
            A (name, kind, anchor node) tuple, or None if the node is not
            a named documentable construct.
        """
        if node.type in _FUNC_TYPES:
            name_node = node.child_by_field_name("name")
            if not name_node:
                return None
            return (
                self._node_text(name_node, source_bytes),
                SpanKind.FUNCTION,
                self._exported(node),
            )

        if node.type == "variable_declarator":
            name_node = node.child_by_field_name("name")
            value_node = node.child_by_field_name("value")
            if not name_node or not value_node:
                return None
            if name_node.type != "identifier" or value_node.type != "arrow_function":
                return None
            return (
                self._node_text(name_node, source_bytes),
                SpanKind.ARROW_FUNCTION,
                self._declaration_anchor(node),
            )

        if node.type == "method_definition" and node.parent is not None:
            kind = _METHOD_PARENTS.get(node.parent.type)
            name_node = node.child_by_field_name("name")
            if kind is None or not name_node:
                return None
            return (
                self._node_text(name_node, source_bytes),
                kind,
                self._decorated(node),
            )

        return None

    def _exported(self, node: tree_sitter.Node) -> tree_sitter.Node:
        """Widen a declaration to its enclosing export statement, if any."""
        parent = node.parent
        if parent is not None and parent.type == "export_statement":
            return parent
        return node

    def _declaration_anchor(self, declarator: tree_sitter.Node) -> tree_sitter.Node:
        """Anchor an arrow function at its declaration keyword.

        Falls back to the declarator itself when the declaration binds
        more than one name, so that every span keeps a distinct start.
        """
        declaration = declarator.parent
        if declaration is None or declaration.type not in _DECLARATION_TYPES:
            return declarator
        declarators = [
            c for c in declaration.named_children if c.type == "variable_declarator"
        ]
        if len(declarators) != 1:
            return declarator
        return self._exported(declaration)

    def _decorated(self, method: tree_sitter.Node) -> tree_sitter.Node:
        """Move a method's anchor up over decorators that precede it."""
        anchor = method
        prev = method.prev_named_sibling
        while prev is not None and prev.type == "decorator":
            anchor = prev
            prev = prev.prev_named_sibling
        return anchor

    def _describe_error(self, root: tree_sitter.Node, source_bytes: bytes) -> str:
        """Build a message locating the first syntax error in the tree."""
        for node in _walk(root):
            if node.is_missing:
                return (
                    f"Missing {node.type!r} at line {node.start_point.row + 1}, "
                    f"column {node.start_point.column + 1}"
                )
            if node.is_error:
                snippet = self._node_text(node, source_bytes).strip().splitlines()
                token = snippet[0][:40] if snippet else ""
                return (
                    f"Unexpected token {token!r} at line {node.start_point.row + 1}, "
                    f"column {node.start_point.column + 1}"
                )
        return "Syntax error"

    def _offset_converter(
        self, source: str, source_bytes: bytes
    ) -> Callable[[int], int]:
        """Return a function mapping UTF-8 byte offsets to string indices."""
        if len(source_bytes) == len(source):
            return lambda byte_offset: byte_offset
        return lambda byte_offset: len(source_bytes[:byte_offset].decode("utf-8"))

    def _node_text(self, node: tree_sitter.Node, source_bytes: bytes) -> str:
        """Extract the text content of a tree-sitter node."""
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8")
