"""
Ledger → Normalize → Group → Score → Recurring patterns

A deterministic, testable recurring-transaction detector for a local
personal-finance ledger. Every call recomputes from scratch over the
requested date window under a fixed, versioned policy.
"""

__version__ = "0.1.0"

# Envelope contract version for machine consumers
API_VERSION = "v1"
