"""
Django Admin do help desk.

Somente leitura para tickets, mensagens e eventos: mutações passam
pelo Workflow Engine para manter auditoria e notificações.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    DomainEventModel,
    MessageModel,
    NotificationModel,
    PrincipalModel,
    TicketModel,
)


STATUS_COLORS = {
    'Open': '#17a2b8',
    'In Progress': '#ffc107',
    'Pending': '#6c757d',
    'Urgent': '#dc3545',
    'Resolved': '#28a745',
    'Closed': '#343a40',
}


class ReadOnlyAdmin(admin.ModelAdmin):

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PrincipalModel)
class PrincipalAdmin(ReadOnlyAdmin):
    """Papéis são alterados pela API (ChangeRoleService)."""

    list_display = ['display_name', 'email', 'role', 'department', 'created_at']
    list_filter = ['role']
    search_fields = ['id', 'email', 'display_name']


@admin.register(TicketModel)
class TicketAdmin(ReadOnlyAdmin):

    list_display = [
        'number',
        'subject',
        'type',
        'status_badge',
        'priority',
        'created_by_name',
        'assigned_to_name',
        'created_at',
        'version',
    ]

    list_filter = ['status', 'type', 'priority', 'created_at']

    search_fields = ['number', 'subject', 'description', 'created_by_name']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    def status_badge(self, obj):
        """Exibe status com badge colorido."""
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.status, '#6c757d'),
            obj.status
        )
    status_badge.short_description = 'Status'


@admin.register(MessageModel)
class MessageAdmin(ReadOnlyAdmin):

    list_display = ['ticket', 'sender_name', 'sender_role', 'is_internal', 'is_system', 'created_at']
    list_filter = ['is_internal', 'is_system']
    search_fields = ['ticket__number', 'body', 'sender_name']


@admin.register(NotificationModel)
class NotificationAdmin(ReadOnlyAdmin):

    list_display = ['recipient_id', 'ticket_number', 'kind', 'read', 'created_at']
    list_filter = ['kind', 'read']


@admin.register(DomainEventModel)
class DomainEventAdmin(ReadOnlyAdmin):

    list_display = [
        'event_id_curto',
        'event_type',
        'aggregate_type',
        'aggregate_id',
        'actor_id',
        'occurred_at',
    ]

    list_filter = ['event_type', 'aggregate_type', 'occurred_at']

    search_fields = ['event_id', 'aggregate_id', 'event_type', 'actor_id']

    def event_id_curto(self, obj):
        return obj.event_id[:8] + '...'
    event_id_curto.short_description = 'Event ID'
