"""Spreadsheet decoding and header detection."""
