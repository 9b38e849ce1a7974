"""Resource adapters: one per backend technology.

Adapters touch the host only through the command sandbox (or, for SQL
backends, an administrative connection). Each method returns True on
success or raises :class:`~hostctl.domain.errors.OperationalError` carrying
the backend's message; no backend-specific exception type leaves an
adapter.
"""
