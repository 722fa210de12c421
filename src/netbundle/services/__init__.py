"""Service layer: resolution, fetch queue, loading, and build orchestration.

Services may import from domain, infrastructure, and plugins.
They must never import from commands or output.
"""
