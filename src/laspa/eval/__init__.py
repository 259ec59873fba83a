"""Evaluator helper modules for the Laspa runtime."""

__all__ = [
    "bind",
    "blocks",
    "control",
    "expr",
    "fn",
    "helpers",
    "loops",
]
