"""Exporters that receive harvested samples."""
