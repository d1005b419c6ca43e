"""Find function and method items in a crate's sources.

tree-sitter keeps the arguments of a macro invocation as an unparsed token
tree. Discovery re-parses that token tree as Rust items, so a function written
inside ``some_macro! { ... }`` is reported with ``from_expansion`` set.
``macro_rules!`` definitions are not scanned: their bodies are templates
with ``$`` metavariables, not items.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from tree_sitter import Node, Parser

from .lexing.tokenizer import rust_language
from .source_map import SourceFile, SourceMap
from .types import BodyDescriptor, BodyKind, SourceSpan

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Scope:
    path: Tuple[str, ...]
    container: Optional[BodyKind] = None
    in_macro: bool = False
    # byte offset of the parsed text inside the file; non-zero for token trees
    offset: int = 0

    def child(self, segment: str | None = None, **changes) -> "_Scope":
        path = self.path + (segment,) if segment else self.path
        return _Scope(
            path=path,
            container=changes.get("container", self.container),
            in_macro=changes.get("in_macro", self.in_macro),
            offset=changes.get("offset", self.offset),
        )


def crate_name_for(root: Path) -> str:
    """``[package].name`` from Cargo.toml, else the directory name."""

    manifest = root / "Cargo.toml"
    name = root.resolve().name
    if manifest.exists():
        with manifest.open("rb") as fh:
            package = tomllib.load(fh).get("package", {})
        name = package.get("name", name)
    return name.replace("-", "_")


def module_path_for(relative: Path) -> Tuple[str, ...]:
    parts = list(relative.with_suffix("").parts)
    if len(parts) == 1 and parts[0] in ("lib", "main"):
        return ()
    if parts and parts[-1] == "mod":
        parts.pop()
    return tuple(parts)


class CrateDiscovery:
    """Parses each file once and reports its item-like nodes in source order."""

    def __init__(self, source_map: SourceMap):
        self.source_map = source_map
        self._parser = Parser(rust_language())

    def discover_file(self, source_file: SourceFile, scope_path: Tuple[str, ...]) -> List[BodyDescriptor]:
        if source_file.data is None:
            return []
        tree = self._parser.parse(source_file.data)
        found: List[BodyDescriptor] = []
        self._visit(tree.root_node, _Scope(path=scope_path), source_file, found)
        return found

    def _visit(self, node: Node, scope: _Scope, source_file: SourceFile, found: List[BodyDescriptor]) -> None:
        for child in node.children:
            kind = child.type
            if kind in ("function_item", "function_signature_item"):
                self._record(child, scope, source_file, found)
            elif kind == "mod_item":
                self._descend(child, scope.child(self._text(child, "name", scope, source_file)), source_file, found)
            elif kind == "impl_item":
                self._descend(
                    child,
                    scope.child(self._impl_segment(child, scope, source_file), container=BodyKind.METHOD),
                    source_file,
                    found,
                )
            elif kind == "trait_item":
                self._descend(
                    child,
                    scope.child(self._text(child, "name", scope, source_file), container=BodyKind.TRAIT_ITEM),
                    source_file,
                    found,
                )
            elif kind == "foreign_mod_item":
                self._descend(child, scope.child(container=BodyKind.FOREIGN_ITEM), source_file, found)
            elif kind == "macro_invocation":
                self._expand(child, scope, source_file, found)
            elif kind == "macro_definition":
                continue
            else:
                self._visit(child, scope, source_file, found)

    def _descend(self, node: Node, scope: _Scope, source_file: SourceFile, found: List[BodyDescriptor]) -> None:
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit(body, scope, source_file, found)

    def _expand(self, node: Node, scope: _Scope, source_file: SourceFile, found: List[BodyDescriptor]) -> None:
        """Re-parse the invocation's token tree, without its delimiters, as items."""

        token_tree = next((child for child in node.children if child.type == "token_tree"), None)
        if token_tree is None or token_tree.end_byte - token_tree.start_byte < 2:
            return
        inner_lo = scope.offset + token_tree.start_byte + 1
        inner_hi = scope.offset + token_tree.end_byte - 1
        tree = self._parser.parse(source_file.data[inner_lo:inner_hi])
        self._visit(tree.root_node, scope.child(in_macro=True, offset=inner_lo), source_file, found)

    def _record(self, node: Node, scope: _Scope, source_file: SourceFile, found: List[BodyDescriptor]) -> None:
        name = self._text(node, "name", scope, source_file)
        body = node.child_by_field_name("body")
        if scope.container is None:
            kind = BodyKind.FUNCTION
        else:
            kind = scope.container
        if kind.has_body and body is None:
            kind = BodyKind.FOREIGN_ITEM
        base = source_file.start_pos + scope.offset
        descriptor = BodyDescriptor(
            kind=kind,
            function_path="::".join(scope.path + (name,)),
            item_span=SourceSpan(base + node.start_byte, base + node.end_byte),
            body_span=SourceSpan(base + body.start_byte, base + body.end_byte) if body is not None else None,
            from_expansion=scope.in_macro,
        )
        found.append(descriptor)
        LOGGER.debug("Discovered %s %s", kind.value, descriptor.function_path)
        if body is not None:
            # Items nested in a body are items of their own, scoped under the function.
            nested = _Scope(path=scope.path + (name,), in_macro=scope.in_macro, offset=scope.offset)
            self._visit(body, nested, source_file, found)

    def _impl_segment(self, node: Node, scope: _Scope, source_file: SourceFile) -> str:
        type_name = self._text(node, "type", scope, source_file)
        trait = node.child_by_field_name("trait")
        if trait is None:
            return type_name
        return f"<{type_name} as {self._text(node, 'trait', scope, source_file)}>"

    @staticmethod
    def _text(node: Node, field_name: str, scope: _Scope, source_file: SourceFile) -> str:
        target = node.child_by_field_name(field_name)
        if target is None or source_file.data is None:
            return "_"
        lo = scope.offset + target.start_byte
        hi = scope.offset + target.end_byte
        raw = source_file.data[lo:hi].decode("utf-8")
        return " ".join(raw.split())


def discover_crate(
    root: Path | str,
    source_map: SourceMap,
    crate_name: Optional[str] = None,
) -> List[BodyDescriptor]:
    """Register every ``.rs`` file of the crate and list its items in file order."""

    root = Path(root)
    src_root = root / "src" if (root / "src").is_dir() else root
    krate = crate_name or crate_name_for(root)
    discovery = CrateDiscovery(source_map)
    bodies: List[BodyDescriptor] = []
    for path in sorted(src_root.rglob("*.rs")):
        name = path.relative_to(root).as_posix()
        source_file = source_map.load_file(path, name=name)
        scope_path = (krate,) + module_path_for(path.relative_to(src_root))
        bodies.extend(discovery.discover_file(source_file, scope_path))
    LOGGER.info("Discovered %s items in %s", len(bodies), root)
    return bodies


__all__ = ["CrateDiscovery", "crate_name_for", "discover_crate", "module_path_for"]
