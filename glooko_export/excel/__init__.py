"""XLSX workbook layout and serialization."""
