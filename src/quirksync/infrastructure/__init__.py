"""Infrastructure layer — upstream fetcher and Remote Settings client.

This layer depends on stdlib, httpx, and structlog.
It must never import from domain, services, commands, or output.
"""
