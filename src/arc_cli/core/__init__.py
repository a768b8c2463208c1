"""Core of the client: configuration, domain models and the dispatch pipeline.

Why a separate layer:
- The pipeline talks to the node through the `NodeClient` contract only, so
  it can be exercised with fakes and without a network.
"""
