"""Infrastructure layer: content cache, HTTP fetcher, filesystem access.

This layer depends on stdlib, httpx, and the domain layer (error and
location types). It must never import from services, commands, or output.
"""
