"""vibe-builder: streaming content parser and view-state core for an AI app builder."""

__version__ = "0.1.0"
