"""Wrappers around external command-line tools (git, npm)."""
