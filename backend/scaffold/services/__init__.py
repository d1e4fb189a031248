"""Service layer: use cases orchestrating repositories, units of work and the query engine.

Import concrete services from their subpackages
(:mod:`scaffold.services.users`, :mod:`scaffold.services.roles`).
"""
