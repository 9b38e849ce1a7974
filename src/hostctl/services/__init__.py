"""Service layer: provisioning and teardown workflows.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
