"""Type registry, catalog index management and document lifecycle.

Import from the submodules (``dcap.domain.registry``, ``.index_manager``,
``.document_service``, ``.errors``, ``.models``); collaborators such as the
content store depend on ``dcap.domain.errors`` and must be able to import it
without pulling in the services.
"""
