"""Logging setup and error log buffering."""
