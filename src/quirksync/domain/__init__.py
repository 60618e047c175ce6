"""Domain layer — realm groups, rule entries, directives, run stages.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
