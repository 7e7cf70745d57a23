"""Procura ERP backend: document signature workflow."""

__version__ = "0.1.0"
