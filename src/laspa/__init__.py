"""Laspa: a small postfix (RPN) language with a tree-walking interpreter."""

from loguru import logger

__version__ = "0.1.0"

# Library use stays quiet; the CLI turns logging back on.
logger.disable("laspa")
