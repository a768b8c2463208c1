"""Contracts of the core.

Why:
- The dispatcher depends on these Protocols, not on the gRPC adapter, so the
  transport can be swapped for a fake in tests.
"""
