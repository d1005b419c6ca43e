"""Re-lex isolated function bodies and rebase their tokens onto file offsets."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Sequence, Tuple

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from ..errors import LexError
from ..indexing.span_index import TokenStore
from ..source_map import SourceMap
from ..types import SourceSpan, Token

LOGGER = logging.getLogger(__name__)

# Grammar nodes with children that the Rust lexer emits as a single token.
_ATOMIC_KINDS = frozenset({"string_literal", "raw_string_literal", "char_literal", "lifetime", "label"})
_COMMENT_KINDS = frozenset({"line_comment", "block_comment"})
_DELIMITERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_DELIMITERS.values())
# Punctuation the grammar splits in two where the Rust lexer emits one token.
_JOINED = {">": ">>", "|": "||", "&": "&&"}


@lru_cache(maxsize=1)
def rust_language() -> Language:
    return Language(tree_sitter_rust.language())


def _is_doc_comment(text: bytes) -> bool:
    if text.startswith(b"///"):
        return not text.startswith(b"////")
    if text.startswith(b"//!") or text.startswith(b"/*!"):
        return True
    if text.startswith(b"/**"):
        return not text.startswith(b"/***") and text != b"/**/"
    return False


def _flatten(root: Node, data: bytes) -> List[Node]:
    """Depth-first leaves of the tree, delimited groups flattened in place."""

    leaves: List[Node] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            continue
        if node.type in _COMMENT_KINDS:
            if _is_doc_comment(data[node.start_byte : node.end_byte]):
                leaves.append(node)
            continue
        if node.type in _ATOMIC_KINDS or node.child_count == 0:
            if node.end_byte > node.start_byte:
                leaves.append(node)
            continue
        stack.extend(reversed(node.children))
    return leaves


def _glue(leaves: Sequence[Node]) -> List[Tuple[int, int, str]]:
    """Leaf (start, end, kind) triples with adjacent joinable punctuation merged."""

    pieces: List[Tuple[int, int, str]] = []
    for node in leaves:
        start, end, kind = node.start_byte, node.end_byte, node.type
        if pieces and kind in _JOINED:
            prev_start, prev_end, prev_kind = pieces[-1]
            if prev_kind == kind and prev_end == start:
                pieces[-1] = (prev_start, end, _JOINED[kind])
                continue
        pieces.append((start, end, kind))
    return pieces


def _check_delimiters(leaves: Sequence[Node], base: int) -> None:
    expected: List[str] = []
    for node in leaves:
        if node.type in _DELIMITERS:
            expected.append(_DELIMITERS[node.type])
        elif node.type in _CLOSERS:
            if not expected:
                raise LexError(f"unexpected closing delimiter {node.type!r} at {base + node.start_byte}")
            want = expected.pop()
            if want != node.type:
                raise LexError(
                    f"mismatched closing delimiter {node.type!r} at {base + node.start_byte}, expected {want!r}"
                )
    if expected:
        raise LexError(f"unclosed delimiter, expected {expected[-1]!r}")


class Tokenizer:
    """Produces the flat token sequence of a body span in global coordinates."""

    def __init__(self, source_map: SourceMap, language: Language | None = None):
        self.source_map = source_map
        self._parser = Parser(language or rust_language())

    def tokenize(self, span: SourceSpan) -> List[Token]:
        LOGGER.debug("Tokens: %s", span)
        try:
            snippet = self.source_map.span_to_snippet(span)
        except ValueError as exc:
            raise LexError(f"no snippet for body span {span.lo}..{span.hi}: {exc}") from exc
        LOGGER.debug("%s", snippet)
        return self.tokenize_snippet(snippet, span.lo)

    def tokenize_snippet(self, snippet: str, base: int) -> List[Token]:
        """Lex ``snippet`` as a standalone unit and shift every token by ``base``."""

        data = snippet.encode("utf-8")
        tree = self._parser.parse(data)
        leaves = _flatten(tree.root_node, data)
        _check_delimiters(leaves, base)
        pieces = _glue(leaves)
        LOGGER.debug("%s", [kind for _, _, kind in pieces])
        return [
            Token(index=idx, span=SourceSpan(base + start, base + end), kind=kind)
            for idx, (start, end, kind) in enumerate(pieces)
        ]

    def build(self, span: SourceSpan) -> TokenStore:
        return TokenStore.build(self.tokenize(span))


__all__ = ["Tokenizer", "rust_language"]
