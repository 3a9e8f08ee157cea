"""JavaScript / TypeScript import extraction on top of tree-sitter.

Each source file is parsed with the grammar selected by its extension and the
resulting tree is walked depth-first. Three statement shapes produce
``Import`` records: ES6 ``import`` statements, ``require(...)`` calls and
dynamic ``import(...)`` calls.

The node kind strings below match tree-sitter-javascript and
tree-sitter-typescript 0.2x.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Union

from ..models import (
    DefaultSpecifier,
    EntireSpecifier,
    FileType,
    Import,
    ImportKind,
    ImportSpecifier,
    NamedSpecifier,
    NamespaceSpecifier,
    SideEffectSpecifier,
    detect_file_type,
)

logger = logging.getLogger(__name__)


# =====================================================================
# ERRORS
# =====================================================================

class AnalysisError(Exception):
    """A single file could not be analyzed. Never fatal for a directory scan."""

    def __init__(self, path: Optional[str], message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class ParseError(AnalysisError):
    pass


class SourceReadError(AnalysisError):
    pass


class UnsupportedFileType(AnalysisError):
    """The file's extension has no grammar; callers treat this as a skip."""


class GrammarLoadError(RuntimeError):
    """The tree-sitter grammars could not be loaded (a packaging problem)."""


# =====================================================================
# GRAMMARS
# =====================================================================

def _load_parsers() -> Dict[FileType, object]:
    try:
        import tree_sitter_javascript as tsjs
        import tree_sitter_typescript as tsts
        from tree_sitter import Language, Parser as TSParser

        return {
            FileType.JAVASCRIPT: TSParser(Language(tsjs.language())),
            FileType.TYPESCRIPT: TSParser(Language(tsts.language_typescript())),
            FileType.TSX: TSParser(Language(tsts.language_tsx())),
        }
    except Exception as e:
        raise GrammarLoadError(f"Failed to load tree-sitter grammars: {e}") from e


# =====================================================================
# PUBLIC INTERFACE
# =====================================================================

class ImportAnalyzer:
    """Extracts ``Import`` records from JS/TS sources.

    Holds one parser per grammar, so an instance must not be shared between
    threads; create one analyzer per worker instead.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._parsers = _load_parsers()

    @staticmethod
    def supports(path: str) -> bool:
        return detect_file_type(path) is not None

    def analyze_file(self, path: str) -> List[Import]:
        file_type = detect_file_type(path)
        if file_type is None:
            raise UnsupportedFileType(path, "unsupported file type")

        try:
            with open(path, "rb") as fh:
                source = fh.read()
        except OSError as e:
            raise SourceReadError(path, f"failed to read file: {e}") from e

        try:
            return self.analyze_source(source, file_type)
        except ParseError as e:
            raise ParseError(path, e.message) from e

    def analyze_source(self, source: Union[str, bytes], file_type: FileType) -> List[Import]:
        if isinstance(source, str):
            data = source.encode("utf-8")
        else:
            data = source
            try:
                data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(None, f"source is not valid UTF-8: {e}") from e

        tree = self._parsers[file_type].parse(data)
        if tree is None:
            raise ParseError(None, "failed to parse source")
        root = tree.root_node
        if root.has_error:
            if self.strict:
                raise ParseError(None, "source contains syntax errors")
            logger.debug("syntax errors in %s source, walking recovered tree", file_type.value)

        return _extract_imports(root, data)


# =====================================================================
# TREE WALK
# =====================================================================

def _extract_imports(root, source: bytes) -> List[Import]:
    out: List[Import] = []
    for node in _walk_tree(root):
        if node.type == "import_statement":
            imp = _parse_import_statement(node, source)
        elif node.type == "call_expression":
            imp = _parse_call_expression(node, source)
        else:
            continue
        if imp is not None:
            out.append(imp)
    return out


def _walk_tree(root) -> Iterator:
    """Pre-order, depth-first, without recursion (minified files nest deeply)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _node_text(node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _line(node) -> int:
    return node.start_point[0] + 1


def _string_value(node, source: bytes) -> Optional[str]:
    """Contents of a ``string`` node without its quotes."""
    if node is None or node.type != "string":
        return None
    text = _node_text(node, source)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return text


# ---------------------------------------------------------------------
# ES6 import statements
# ---------------------------------------------------------------------

def _parse_import_statement(node, source: bytes) -> Optional[Import]:
    clause = None
    require_clause = None
    for child in node.children:
        if child.type == "import_clause":
            clause = child
        elif child.type == "import_require_clause":
            require_clause = child

    # TypeScript: import fs = require('fs')
    if require_clause is not None:
        module = _string_value(_source_node(require_clause), source)
        if module is None:
            return None
        name = next((c for c in require_clause.children if c.type == "identifier"), None)
        return Import(
            source=module,
            specifiers=[EntireSpecifier(_node_text(name, source) if name else None)],
            kind=ImportKind.COMMONJS,
            line=_line(node),
        )

    module = _string_value(_source_node(node), source)
    if module is None:
        return None

    if clause is None:
        specifiers: List[ImportSpecifier] = [SideEffectSpecifier()]
    else:
        # import {} from "x" still runs the module
        specifiers = _parse_import_clause(clause, source) or [SideEffectSpecifier()]

    return Import(source=module, specifiers=specifiers, kind=ImportKind.ES6, line=_line(node))


def _source_node(node):
    found = node.child_by_field_name("source")
    if found is None:
        found = next((c for c in node.children if c.type == "string"), None)
    return found


def _parse_import_clause(clause, source: bytes) -> List[ImportSpecifier]:
    specifiers: List[ImportSpecifier] = []
    for child in clause.children:
        if child.type == "identifier":
            specifiers.append(DefaultSpecifier(_node_text(child, source)))
        elif child.type == "namespace_import":
            alias = next((c for c in child.children if c.type == "identifier"), None)
            if alias is not None:
                specifiers.append(NamespaceSpecifier(_node_text(alias, source)))
        elif child.type == "named_imports":
            for spec in child.children:
                if spec.type == "import_specifier":
                    named = _parse_import_specifier(spec, source)
                    if named is not None:
                        specifiers.append(named)
    return specifiers


def _parse_import_specifier(node, source: bytes) -> Optional[NamedSpecifier]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    if name_node.type == "string":
        # import { "kebab-name" as alias } from 'x'
        imported = _string_value(name_node, source) or ""
    else:
        imported = _node_text(name_node, source)
    alias_node = node.child_by_field_name("alias")
    local = _node_text(alias_node, source) if alias_node is not None else imported
    return NamedSpecifier(imported=imported, local=local)


# ---------------------------------------------------------------------
# require() and import()
# ---------------------------------------------------------------------

def _first_string_argument(call, source: bytes) -> Optional[str]:
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return None
    named = args.named_children
    return _string_value(named[0], source) if named else None


def _parse_call_expression(node, source: bytes) -> Optional[Import]:
    function = node.child_by_field_name("function")
    if function is None:
        return None

    if function.type == "import":
        module = _first_string_argument(node, source)
        if module is None:
            return None
        return Import(
            source=module,
            specifiers=[SideEffectSpecifier()],
            kind=ImportKind.DYNAMIC_IMPORT,
            line=_line(node),
        )

    if function.type == "identifier" and _node_text(function, source) == "require":
        module = _first_string_argument(node, source)
        if module is None:
            return None
        return Import(
            source=module,
            specifiers=_require_specifiers(node, source),
            kind=ImportKind.COMMONJS,
            line=_line(node),
        )

    return None


def _require_specifiers(call, source: bytes) -> List[ImportSpecifier]:
    """Classify what the result of a ``require()`` call is bound to."""
    parent = call.parent
    if parent is None:
        return [EntireSpecifier(None)]

    if parent.type == "expression_statement":
        return [SideEffectSpecifier()]

    if parent.type == "variable_declarator" and _is_field(parent, "value", call):
        return _pattern_specifiers(parent.child_by_field_name("name"), source)

    # require('x').member
    if parent.type == "member_expression" and _is_field(parent, "object", call):
        prop = parent.child_by_field_name("property")
        if prop is not None and prop.type == "property_identifier":
            imported = _node_text(prop, source)
            local = imported
            holder = parent.parent
            if holder is not None and holder.type == "variable_declarator":
                name = holder.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    local = _node_text(name, source)
            return [NamedSpecifier(imported=imported, local=local)]

    if parent.type == "assignment_expression" and _is_field(parent, "right", call):
        left = parent.child_by_field_name("left")
        return [EntireSpecifier(_node_text(left, source) if left is not None else None)]

    return [EntireSpecifier(None)]


def _pattern_specifiers(pattern, source: bytes) -> List[ImportSpecifier]:
    if pattern is None:
        return [EntireSpecifier(None)]
    if pattern.type == "identifier":
        return [EntireSpecifier(_node_text(pattern, source))]
    if pattern.type != "object_pattern":
        # array destructuring and friends: exports can't be told apart
        return [EntireSpecifier(_node_text(pattern, source))]

    specifiers: List[ImportSpecifier] = []
    for child in pattern.named_children:
        if child.type in ("shorthand_property_identifier_pattern", "shorthand_property_identifier"):
            name = _node_text(child, source)
            specifiers.append(NamedSpecifier(imported=name, local=name))
        elif child.type == "pair_pattern":
            key = child.child_by_field_name("key")
            value = child.child_by_field_name("value")
            if key is None:
                continue
            if key.type == "string":
                imported = _string_value(key, source) or ""
            elif key.type in ("property_identifier", "identifier"):
                imported = _node_text(key, source)
            else:
                # computed key: { [name]: x }
                specifiers.append(EntireSpecifier(_node_text(child, source)))
                continue
            local = imported
            if value is not None:
                if value.type == "assignment_pattern":
                    value = value.child_by_field_name("left") or value
                if value.type == "identifier":
                    local = _node_text(value, source)
            specifiers.append(NamedSpecifier(imported=imported, local=local))
        elif child.type == "object_assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None:
                name = _node_text(left, source)
                specifiers.append(NamedSpecifier(imported=name, local=name))
        elif child.type == "rest_pattern":
            rest = next((c for c in child.named_children), None)
            specifiers.append(EntireSpecifier(_node_text(rest, source) if rest else None))
    return specifiers or [SideEffectSpecifier()]


def _is_field(parent, field_name: str, child) -> bool:
    node = parent.child_by_field_name(field_name)
    return node is not None and node == child
