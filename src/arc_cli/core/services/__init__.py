"""Pipeline services: endpoint validation, peer resolution and dispatch."""
