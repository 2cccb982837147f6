"""Readers for coverage records, source maps and source files."""
