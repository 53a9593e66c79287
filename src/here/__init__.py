"""Here: a presence lease registry and its client agent."""

__version__ = "0.1.0"
