"""Inventory reservation ledger with cache and store reconciliation."""
