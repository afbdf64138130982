"""Symbol extraction: tree-sitter parsing of top-level and member definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from tree_sitter import Node as TSNode


class ParseError(ValueError):
    """Source text contains syntax errors."""


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for a programming language."""

    name: str
    language: Language
    symbol_types: dict[str, str]  # node_type -> kind
    member_types: dict[str, str]  # node_type inside a class body -> kind
    wrapper_types: frozenset[str]  # types that wrap definitions (e.g. decorated_definition)
    container_types: frozenset[str]  # types whose body holds more top-level definitions


# ---- Language loaders (lazy, handle ImportError) ----


def _load_python() -> LangConfig:
    import tree_sitter_python as tspython

    return LangConfig(
        name="python",
        language=Language(tspython.language()),
        symbol_types={
            "function_definition": "function",
            "class_definition": "class",
        },
        member_types={"function_definition": "method"},
        wrapper_types=frozenset({"decorated_definition"}),
        container_types=frozenset(),
    )


def _load_php() -> LangConfig:
    import tree_sitter_php as tsphp

    return LangConfig(
        name="php",
        language=Language(tsphp.language_php()),
        symbol_types={
            "function_definition": "function",
            "class_declaration": "class",
            "interface_declaration": "interface",
            "trait_declaration": "trait",
            "enum_declaration": "type",
        },
        member_types={"method_declaration": "method"},
        wrapper_types=frozenset(),
        container_types=frozenset({"namespace_definition"}),
    )


# Extension -> loader function mapping.
_EXTENSION_LOADERS: dict[str, Callable[[], LangConfig]] = {
    ".py": _load_python,
    ".pyi": _load_python,
    ".php": _load_php,
}

# Cache for loaded languages (None means "tried and failed / unsupported").
_LANG_CACHE: dict[str, LangConfig | None] = {}


def get_lang_config(extension: str) -> LangConfig | None:
    """Get language config for a file extension, or ``None`` if unsupported/unavailable."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        _LANG_CACHE[extension] = None
        return None

    try:
        config = loader()
    except ImportError:
        _LANG_CACHE[extension] = None
        return None

    _LANG_CACHE[extension] = config
    return config


def supported_extensions() -> frozenset[str]:
    """Return the set of file extensions with available grammars."""
    return frozenset(ext for ext in _EXTENSION_LOADERS if get_lang_config(ext) is not None)


def clear_cache() -> None:
    """Clear the language config cache (useful for testing)."""
    _LANG_CACHE.clear()


def _node_name(node: TSNode) -> str | None:
    name_node = node.child_by_field_name("name")
    if name_node is None or not name_node.text:
        return None
    return name_node.text.decode("utf-8")


def _unwrap(node: TSNode, config: LangConfig, types: dict[str, str]) -> TSNode | None:
    """Unwrap decorators to find the actual definition."""
    if node.type not in config.wrapper_types:
        return node if node.type in types else None
    for child in node.children:
        if child.type in types:
            return child
    return None


def _symbol(node: TSNode, span: TSNode, kind: str) -> dict[str, Any] | None:
    name = _node_name(node)
    if name is None:
        return None
    # tree-sitter uses 0-based rows; we want 1-based lines.
    return {
        "name": name,
        "kind": kind,
        "line_start": span.start_point.row + 1,
        "line_end": span.end_point.row + 1,
    }


def _walk(nodes: Iterable[TSNode], config: LangConfig, out: list[dict[str, Any]]) -> None:
    for child in nodes:
        if child.type in config.container_types:
            body = child.child_by_field_name("body")
            if body is not None:
                _walk(body.children, config, out)
            continue

        actual = _unwrap(child, config, config.symbol_types)
        if actual is None:
            continue
        sym = _symbol(actual, child, config.symbol_types[actual.type])
        if sym is None:
            continue
        out.append(sym)

        body = actual.child_by_field_name("body")
        if body is None or sym["kind"] == "function":
            continue
        for member in body.children:
            method = _unwrap(member, config, config.member_types)
            if method is None:
                continue
            member_sym = _symbol(method, member, config.member_types[method.type])
            if member_sym is not None:
                member_sym["name"] = f"{sym['name']}.{member_sym['name']}"
                out.append(member_sym)


def extract_symbols(content: str, extension: str) -> list[dict[str, Any]]:
    """Extract top-level definitions and class methods from source text.

    Returns a list of symbol dicts with ``name``, ``kind``, ``line_start``
    and ``line_end``.  Methods are named ``Class.method``.  Returns an empty
    list for unsupported extensions or blank content; raises
    :class:`ParseError` when the source has syntax errors.
    """
    config = get_lang_config(extension)
    if config is None or not content.strip():
        return []

    parser = Parser(config.language)
    tree = parser.parse(content.encode("utf-8"))
    if tree.root_node.has_error:
        msg = f"syntax error in {config.name} source"
        raise ParseError(msg)

    symbols: list[dict[str, Any]] = []
    _walk(tree.root_node.children, config, symbols)
    return symbols
