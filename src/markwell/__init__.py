"""markwell: convert documents to and from Markdown."""

from __future__ import annotations

__version__ = "0.1.0"
