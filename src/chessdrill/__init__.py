"""Annotated-game drill trainer: PGN move trees and a variation-aware trainer."""

__version__ = "0.1.0"
