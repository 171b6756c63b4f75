"""Markdown rendering of resolved WMS metadata."""

from .metadata_tree import main as metadata_tree_main
from .metadata_tree import render_metadata_to_markdown, render_metadata_tree_to_markdown

__all__ = [
    "render_metadata_tree_to_markdown",
    "render_metadata_to_markdown",
    "metadata_tree_main",
]
