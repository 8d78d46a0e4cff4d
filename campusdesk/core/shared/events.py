"""
Domain Events - Comunicação desacoplada entre componentes.

Eventos emitidos pelo Workflow Engine e consumidos pelo
Notification Dispatcher e por assinantes em tempo real.

Características:
- Imutáveis após criação
- Auto-geração de ID e timestamp
- Serializáveis para persistência/transporte
- Rastreáveis via aggregate_id

Pattern: Outbox simplificado
    - Eventos são gravados no Event Store dentro da mesma transação
    - Publicação acontece após commit do UoW
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, ClassVar
import uuid


def utcnow() -> datetime:
    """Momento atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """
    Classe base abstrata para Domain Events.

    Um Domain Event representa algo significativo que aconteceu
    no domínio e que pode ser relevante para outras partes do sistema.

    Características:
    - Nomeados no passado (TicketCreated, não CreateTicket)
    - Representam fatos históricos
    - Contêm dados necessários para notificar interessados

    Attributes:
        event_id: Identificador único do evento
        aggregate_id: ID do agregado que gerou o evento
        occurred_at: Momento em que o evento ocorreu
        version: Versão do schema do evento (para evolução)
        actor_id: Quem causou o evento (opcional)
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=utcnow)
    version: int = 1
    actor_id: str = ""

    _base_fields: ClassVar[frozenset] = frozenset(
        {"event_id", "aggregate_id", "occurred_at", "version", "actor_id"}
    )

    def __post_init__(self):
        """Validação após inicialização."""
        if not self.aggregate_id:
            raise ValueError("aggregate_id é obrigatório")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """
        Retorna o tipo do agregado que gerou este evento.

        Returns:
            Nome do tipo do agregado (ex: "Ticket", "Principal")
        """
        ...

    @property
    def event_type(self) -> str:
        """Nome do evento (nome da classe sem o sufixo Event)."""
        name = self.__class__.__name__
        return name[:-len("Event")] if name.endswith("Event") else name

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa evento para dicionário.

        Útil para:
        - Persistência em Event Store
        - Envio via Celery
        - Logging estruturado
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "actor_id": self.actor_id,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """Campos específicos do evento (tudo que não é da classe base)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in self._base_fields
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainEvent":
        """
        Reconstrói evento a partir de dicionário.

        Factory method para deserialização de eventos persistidos
        ou recebidos pelo worker Celery.
        """
        return cls(
            event_id=data.get("event_id", str(uuid.uuid4())),
            aggregate_id=data["aggregate_id"],
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
            version=data.get("version", 1),
            actor_id=data.get("actor_id", ""),
            **data.get("data", {}),
        )

    def __repr__(self) -> str:
        return (
            f"{self.event_type}("
            f"event_id={self.event_id[:8]}..., "
            f"aggregate_id={self.aggregate_id}, "
            f"occurred_at={self.occurred_at.isoformat()}"
            f")"
        )


class EventRegistry:
    """
    Registro nome -> classe de evento.

    Permite que o worker reconstrua o evento tipado a partir do
    dicionário serializado.
    """

    _events: Dict[str, type] = {}

    @classmethod
    def register(cls, event_class: type) -> type:
        """Decorator que registra a classe pelo seu event_type."""
        name = event_class.__name__
        name = name[:-len("Event")] if name.endswith("Event") else name
        cls._events[name] = event_class
        return event_class

    @classmethod
    def rebuild(cls, data: Dict[str, Any]) -> DomainEvent:
        """Reconstrói evento tipado a partir de `to_dict()`."""
        event_type = data.get("event_type")
        if event_type not in cls._events:
            raise ValueError(f"Tipo de evento desconhecido: {event_type}")
        return cls._events[event_type].from_dict(data)
