"""Infrastructure layer: command sandbox, store, and resource adapters.

This layer depends on stdlib, third-party libs (SQLAlchemy, Jinja2,
mysql-connector), and the domain layer for entities, errors, and text
rules. It must never import from services, commands, or output.
Every interaction with the operating system goes through
:class:`~hostctl.infrastructure.sandbox.CommandSandbox`.
"""
