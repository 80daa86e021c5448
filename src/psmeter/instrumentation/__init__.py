"""Hooks into third-party libraries."""
