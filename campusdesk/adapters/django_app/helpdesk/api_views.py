"""
API Views JSON do help desk.

Cada endpoint corresponde a uma operação do Workflow Engine ou a um
serviço de apoio (perfil, usuários, notificações, relatórios).

Endpoints:
- GET    /api/session/                       - Principal atual
- GET    /api/me/  PATCH /api/me/            - Perfil
- GET    /api/tickets/  POST /api/tickets/   - Listar / abrir ticket
- GET    /api/tickets/<id>/                  - Obter ticket
- POST   /api/tickets/<id>/transition/       - Atribuir e/ou mudar status
- POST   /api/tickets/<id>/assign-to-me/     - Auto-atribuição
- GET    /api/tickets/<id>/messages/         - Mensagens visíveis
- POST   /api/tickets/<id>/messages/         - Resposta ou nota interna
- GET    /api/agents/                        - Diretório de agentes
- GET    /api/principals/                    - Usuários (admin)
- POST   /api/principals/<id>/role/          - Alterar papel (admin)
- GET    /api/notifications/                 - Feed
- POST   /api/notifications/<id>/read/       - Marcar como lida
- POST   /api/notifications/read-all/        - Marcar todas
- GET    /api/reports/dashboard/             - Estatísticas
- GET    /api/reports/agents/                - Desempenho de agentes

Formato:
- Entrada: JSON
- Saída: JSON com estrutura {success, data/error, meta}

Autenticação:
- O gateway de autenticação injeta X-Principal-Id, X-Principal-Email
  e X-Principal-Name. Cada request abre e encerra uma Session.
"""

import json
import logging
from typing import Any, Dict, Optional

from django.http import HttpRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from campusdesk.config.container import get_container
from campusdesk.core.identity.dtos import (
    PrincipalOutputDTO,
    SessionOutputDTO,
    UpdateProfileInputDTO,
)
from campusdesk.core.shared.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    DomainException,
    EntityNotFoundError,
    ForbiddenError,
    StoreUnavailableError,
    ValidationError,
)
from campusdesk.core.tickets.dtos import CreateTicketInputDTO, TicketQueryDTO

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

# Ordem importa: subclasses antes de DomainException
ERROR_STATUS = (
    (ValidationError, 400),
    (EntityNotFoundError, 404),
    (ForbiddenError, 403),
    (ConflictError, 409),
    (StoreUnavailableError, 503),
    (BusinessRuleViolationError, 422),
    (DomainException, 400),
)


class UnauthenticatedError(Exception):
    """Request sem identidade do gateway."""


def json_response(success: bool, data: Any = None, error: str = None,
                  status: int = 200, meta: Dict = None) -> JsonResponse:
    """
    Cria resposta JSON padronizada.

    Args:
        success: Se operação foi bem sucedida
        data: Dados da resposta
        error: Mensagem de erro (se aplicável)
        status: HTTP status code
        meta: Metadados adicionais
    """
    response = {'success': success}

    if data is not None:
        response['data'] = data

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status)


def parse_json_body(request: HttpRequest) -> Dict:
    """
    Raises:
        ValueError: Se JSON inválido ou não for um objeto
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON inválido: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Corpo JSON deve ser um objeto")
    return data


def parse_int(value: Optional[str], name: str, default: Optional[int]) -> Optional[int]:
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} deve ser um número inteiro", field=name)


def body_str(data: Dict, name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Campo texto do corpo JSON.

    Raises:
        ValidationError: Se o valor presente não for string
    """
    value = data.get(name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{name} deve ser texto", field=name)
    return value


def body_str_list(data: Dict, name: str) -> tuple:
    value = data.get(name)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{name} deve ser uma lista de textos", field=name)
    return tuple(value)


def body_bool(data: Dict, name: str, default: bool = False) -> bool:
    value = data.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{name} deve ser booleano", field=name)
    return value


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base para APIs JSON.

    Fornece:
    - Abertura/encerramento da Session a partir dos headers
    - Parsing de JSON
    - Acesso ao container DI
    - Tratamento de erros padronizado
    """

    def dispatch(self, request: HttpRequest, *args, **kwargs) -> JsonResponse:
        try:
            principal_id = request.headers.get('X-Principal-Id', '').strip()
            if not principal_id:
                raise UnauthenticatedError("Header X-Principal-Id ausente")

            resolver = self.container.identity_resolver()
            self.session = resolver.start_session(
                principal_id,
                request.headers.get('X-Principal-Email', ''),
                request.headers.get('X-Principal-Name') or None,
            )
            try:
                return super().dispatch(request, *args, **kwargs)
            finally:
                resolver.end_session(self.session)
        except Exception as e:
            return self.handle_exception(e)

    @property
    def container(self):
        return get_container()

    @property
    def engine(self):
        """Engine novo por request (UnitOfWork próprio)."""
        return self.container.workflow_engine()

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_json_body(request)

    def handle_exception(self, e: Exception) -> JsonResponse:
        """
        Converte exceções em respostas HTTP.

        Mapeamento:
            ValidationError → 400, EntityNotFoundError → 404,
            ForbiddenError → 403, ConflictError → 409,
            StoreUnavailableError → 503, BusinessRuleViolationError → 422
        """
        if isinstance(e, UnauthenticatedError):
            return json_response(success=False, error=str(e), status=401)

        for exc_class, status in ERROR_STATUS:
            if isinstance(e, exc_class):
                if status >= 500:
                    logger.warning(f"API: {e}")
                return json_response(
                    success=False,
                    error=e.message,
                    status=status,
                    meta=e.to_dict(),
                )

        if isinstance(e, ValueError):
            return json_response(success=False, error=str(e), status=400)

        # Erro inesperado
        logger.exception(f"Erro inesperado na API: {e}")
        return json_response(
            success=False,
            error="Erro interno do servidor",
            status=500
        )


# =============================================================================
# Sessão e perfil
# =============================================================================

class SessionAPIView(BaseAPIView):
    """GET /api/session/"""

    def get(self, request: HttpRequest) -> JsonResponse:
        return json_response(success=True, data=SessionOutputDTO.from_session(self.session).to_dict())


class ProfileAPIView(BaseAPIView):
    """
    GET /api/me/ - Perfil do usuário
    PATCH /api/me/ - Atualizar nome de exibição/departamento
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        return json_response(
            success=True,
            data=PrincipalOutputDTO.from_entity(self.session.principal).to_dict(),
        )

    def patch(self, request: HttpRequest) -> JsonResponse:
        data = self.parse_body(request)
        output = self.container.update_profile_service().execute(
            self.session,
            UpdateProfileInputDTO(
                display_name=body_str(data, 'display_name'),
                department=body_str(data, 'department'),
            ),
        )
        return json_response(success=True, data=output.to_dict())


# =============================================================================
# Tickets
# =============================================================================

class TicketAPIListView(BaseAPIView):
    """
    GET /api/tickets/ - Lista tickets visíveis
    POST /api/tickets/ - Abre ticket
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        """
        Query params:
        - status, type, assigned_to, created_by, search
        - page (default: 1), page_size (default: 20)
        """
        query = TicketQueryDTO(
            status=request.GET.get('status') or None,
            ticket_type=request.GET.get('type') or None,
            assigned_to=request.GET.get('assigned_to') or None,
            created_by=request.GET.get('created_by') or None,
            search=request.GET.get('search') or None,
            page=parse_int(request.GET.get('page'), 'page', 1),
            page_size=parse_int(request.GET.get('page_size'), 'page_size', 20),
        )
        result = self.engine.list_tickets(self.session, query)
        payload = result.to_dict()
        items = payload.pop('items')
        return json_response(success=True, data=items, meta=payload)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "type": "IT Support|Facility",
            "subject": "string",
            "description": "string",
            "category": "string (opcional)",
            "priority": "Low|Medium|High|Critical (opcional)",
            "attachments": ["url"] (opcional)
        }
        """
        data = self.parse_body(request)
        input_dto = CreateTicketInputDTO(
            ticket_type=body_str(data, 'type', ''),
            subject=body_str(data, 'subject', ''),
            description=body_str(data, 'description', ''),
            category=body_str(data, 'category') or None,
            priority=body_str(data, 'priority') or 'Medium',
            attachments=body_str_list(data, 'attachments'),
        )
        output = self.engine.file_ticket(self.session, input_dto)
        logger.info(f"API: Ticket criado: {output.number}")
        return json_response(success=True, data=output.to_dict(), status=201)


class TicketAPIDetailView(BaseAPIView):
    """GET /api/tickets/<id>/"""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        ticket = self.engine.get_ticket(self.session, pk)
        return json_response(success=True, data=ticket.to_dict())


class TicketAPITransitionView(BaseAPIView):
    """
    POST /api/tickets/<id>/transition/

    Body JSON:
    {
        "assign_to": "principal id (opcional)",
        "status": "Open|In Progress|Pending|Resolved|Closed|Urgent (opcional)"
    }
    """

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        data = self.parse_body(request)
        ticket = self.engine.transition(
            self.session,
            pk,
            assign_to=body_str(data, 'assign_to') or None,
            status=body_str(data, 'status') or None,
        )
        return json_response(success=True, data=ticket.to_dict())


class TicketAPIAssignToMeView(BaseAPIView):
    """POST /api/tickets/<id>/assign-to-me/"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        ticket = self.engine.assign_to_me(self.session, pk)
        return json_response(success=True, data=ticket.to_dict())


class TicketAPIMessagesView(BaseAPIView):
    """
    GET /api/tickets/<id>/messages/ - Mensagens visíveis ao principal
    POST /api/tickets/<id>/messages/ - {"body": "...", "internal": false}
    """

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        messages = self.engine.list_messages(self.session, pk)
        return json_response(
            success=True,
            data=[m.to_dict() for m in messages],
            meta={'total': len(messages)},
        )

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        data = self.parse_body(request)
        message = self.engine.respond(
            self.session,
            pk,
            body_str(data, 'body', ''),
            internal=body_bool(data, 'internal'),
        )
        return json_response(success=True, data=message.to_dict(), status=201)


# =============================================================================
# Usuários
# =============================================================================

class AgentAPIListView(BaseAPIView):
    """GET /api/agents/?type=IT Support"""

    def get(self, request: HttpRequest) -> JsonResponse:
        agents = self.engine.list_agents(self.session, request.GET.get('type') or None)
        return json_response(success=True, data=[a.to_dict() for a in agents])


class PrincipalAPIListView(BaseAPIView):
    """GET /api/principals/?role=staff (admin)"""

    def get(self, request: HttpRequest) -> JsonResponse:
        directory = self.container.list_principals_service().execute(
            self.session, request.GET.get('role') or None
        )
        payload = directory.to_dict()
        items = payload.pop('items')
        return json_response(success=True, data=items, meta=payload)


class PrincipalAPIRoleView(BaseAPIView):
    """POST /api/principals/<id>/role/ - {"role": "it-agent"} (admin)"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        data = self.parse_body(request)
        role = body_str(data, 'role')
        if not role:
            raise ValidationError("role é obrigatório", field="role")
        output = self.container.change_role_service().execute(self.session, pk, role)
        logger.info(f"API: Papel de {pk} alterado para {output.role}")
        return json_response(success=True, data=output.to_dict())


# =============================================================================
# Notificações
# =============================================================================

class NotificationAPIListView(BaseAPIView):
    """GET /api/notifications/?unread=1&limit=50"""

    def get(self, request: HttpRequest) -> JsonResponse:
        unread_only = request.GET.get('unread', '').lower() in ('1', 'true', 'yes')
        feed = self.container.list_notifications_service().execute(
            self.session,
            unread_only=unread_only,
            limit=parse_int(request.GET.get('limit'), 'limit', 50),
        )
        payload = feed.to_dict()
        items = payload.pop('items')
        return json_response(success=True, data=items, meta=payload)


class NotificationAPIReadView(BaseAPIView):
    """POST /api/notifications/<id>/read/"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        output = self.container.mark_as_read_service().execute(self.session, pk)
        return json_response(success=True, data=output.to_dict())


class NotificationAPIReadAllView(BaseAPIView):
    """POST /api/notifications/read-all/"""

    def post(self, request: HttpRequest) -> JsonResponse:
        changed = self.container.mark_all_as_read_service().execute(self.session)
        return json_response(success=True, data={'marked': changed})


# =============================================================================
# Relatórios
# =============================================================================

class DashboardAPIView(BaseAPIView):
    """GET /api/reports/dashboard/?period=week|month|all"""

    def get(self, request: HttpRequest) -> JsonResponse:
        stats = self.container.dashboard_stats_service().execute(
            self.session, request.GET.get('period', 'month')
        )
        return json_response(success=True, data=stats.to_dict())


class AgentPerformanceAPIView(BaseAPIView):
    """GET /api/reports/agents/?period=week|month|all"""

    def get(self, request: HttpRequest) -> JsonResponse:
        rows = self.container.agent_performance_service().execute(
            self.session, request.GET.get('period', 'month')
        )
        return json_response(success=True, data=[r.to_dict() for r in rows])
