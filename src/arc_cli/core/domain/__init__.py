"""Domain models.

Why:
- Plain, strict data structures (Pydantic v2) for the values that flow through
  the pipeline. The domain knows neither HTTP nor protobuf.
"""
