"""Re-lexing of function bodies."""

from .tokenizer import Tokenizer, rust_language

__all__ = ["Tokenizer", "rust_language"]
