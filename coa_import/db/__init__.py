"""Ledger persistence gateways (PostgreSQL and in-memory)."""
