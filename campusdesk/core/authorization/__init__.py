"""
Política de Autorização.

Funções puras: nenhuma decisão aqui altera estado.
"""

from .policy import (
    Action,
    CAPABILITIES,
    HANDLED_TYPES,
    TicketVisibility,
    authorize,
    can_handle_type,
    can_view,
    can_view_internal_notes,
    is_allowed,
    visibility_for,
)

__all__ = [
    "Action",
    "CAPABILITIES",
    "HANDLED_TYPES",
    "TicketVisibility",
    "authorize",
    "can_handle_type",
    "can_view",
    "can_view_internal_notes",
    "is_allowed",
    "visibility_for",
]
