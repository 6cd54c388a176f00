"""Glooko export ZIP to styled XLSX workbook converter."""

__version__ = "0.1.0"
