"""Inventory bounded context: stock ledger and two-tier consistency.

Tracks one inventory record per (tenant, product), applies reservation,
release, deduction and restock rules, and keeps a short-lived availability
cache in line with the durable store.
"""

from protean.domain import Domain

stockledger = Domain(name="stockledger")
