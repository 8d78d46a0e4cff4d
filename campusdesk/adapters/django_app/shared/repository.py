"""
Repository Base - Implementação base de repositórios com Django ORM.

Fornece funcionalidades comuns para todos os repositórios:
- Conversão Model ↔ Entity via mapper
- Inserção em savepoint com detecção de duplicidade
- Tradução de erros do banco para exceções de domínio

Princípios:
- Repositórios são stateless
- Não contêm lógica de negócio
- Apenas persistência e queries

Tradução de erros:
- IntegrityError → ConflictError (chave única violada)
- OperationalError/InterfaceError → StoreUnavailableError (transitório)
"""

from abc import ABC, abstractmethod
from functools import wraps
from typing import Callable, Generic, List, Optional, Type, TypeVar
import logging

from django.db import IntegrityError, InterfaceError, OperationalError, models, transaction
from django.db.models import QuerySet

from campusdesk.core.shared.exceptions import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Type variables
T = TypeVar("T")  # Entity type
M = TypeVar("M", bound=models.Model)  # Model type
F = TypeVar("F", bound=Callable)


def translate_store_errors(func: F) -> F:
    """
    Decorator que converte falhas transitórias do banco em
    StoreUnavailableError, preservando a causa.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.warning(f"Banco indisponível em {func.__qualname__}: {e}")
            raise StoreUnavailableError(f"Armazenamento indisponível: {e}") from e

    return wrapper  # type: ignore[return-value]


class BaseRepository(ABC, Generic[T, M]):
    """
    Classe base abstrata para repositórios Django.

    Type Parameters:
        T: Tipo da entidade de domínio
        M: Tipo do Model Django

    Example:
        class DjangoMessageRepository(BaseRepository[Message, MessageModel]):
            model_class = MessageModel

            def to_entity(self, model):
                return MessageMapper.to_entity(model)

            def to_model(self, entity):
                return MessageMapper.to_model(entity)
    """

    # Classe do model Django (definir na subclasse)
    model_class: Type[M]

    # Campos para select_related (otimização N+1)
    select_related_fields: List[str] = []

    @abstractmethod
    def to_entity(self, model: M) -> T:
        raise NotImplementedError

    @abstractmethod
    def to_model(self, entity: T) -> M:
        """Converte Entity para Model Django (não salvo)."""
        raise NotImplementedError

    def _get_base_queryset(self) -> QuerySet:
        qs = self.model_class.objects.all()
        if self.select_related_fields:
            qs = qs.select_related(*self.select_related_fields)
        return qs

    def _insert(self, entity: T) -> M:
        """
        Insere entidade nova dentro de um savepoint.

        O savepoint impede que a violação de unicidade invalide a
        transação externa do UnitOfWork, permitindo nova tentativa.

        Raises:
            ConflictError: Se alguma chave única já existe
        """
        model = self.to_model(entity)
        try:
            with transaction.atomic():
                model.save(force_insert=True)
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model_class.__name__} duplicado: {e}",
                entity_id=getattr(entity, "id", None),
            ) from e
        return model

    @translate_store_errors
    def get_by_id(self, entity_id: str) -> Optional[T]:
        """
        Busca entidade por ID.

        Returns:
            Entidade encontrada ou None
        """
        try:
            return self.to_entity(self._get_base_queryset().get(pk=entity_id))
        except self.model_class.DoesNotExist:
            return None

    @translate_store_errors
    def exists(self, entity_id: str) -> bool:
        return self.model_class.objects.filter(pk=entity_id).exists()

    @translate_store_errors
    def count(self) -> int:
        return self.model_class.objects.count()
