"""Business logic services.

Every service is built around a ``UnitOfWork``. Multi-step operations open
``uow.transaction()`` so that calling one service from another joins the
caller's transaction instead of committing on its own.
"""
