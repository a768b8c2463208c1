"""Adapters to the outside world.

Why a package:
- Everything that knows about HTTP/2, gRPC framing or protobuf lives here;
  the core only sees `NodeClient`.
"""
