"""Quantity Engine - deterministic material quantity resolution.

Turns AI-estimated or user-entered material quantities into normalized,
waste-adjusted, audit-traceable gross quantities for a cost budget.

Architecture:
- Coverage Rate Table + Category Inference: name -> category -> coverage
- Version Selector: V1 legacy passthrough vs. V2 coverage-rate logic
- Single-Item + Batch Resolver: never raise, failures are data
- Manual Override Capsule: human quantities, never recomputed
"""

__version__ = "1.0.0"
