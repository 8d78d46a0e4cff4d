"""
URL patterns da API JSON do help desk.

Montadas em /api/ por campusdesk.config.urls.
"""

from django.urls import path

from . import api_views

app_name = 'helpdesk'

urlpatterns = [
    # Sessão e perfil
    path('session/', api_views.SessionAPIView.as_view(), name='session'),
    path('me/', api_views.ProfileAPIView.as_view(), name='profile'),

    # Tickets
    path('tickets/', api_views.TicketAPIListView.as_view(), name='ticket_list'),
    path('tickets/<str:pk>/', api_views.TicketAPIDetailView.as_view(), name='ticket_detail'),
    path('tickets/<str:pk>/transition/', api_views.TicketAPITransitionView.as_view(), name='ticket_transition'),
    path('tickets/<str:pk>/assign-to-me/', api_views.TicketAPIAssignToMeView.as_view(), name='ticket_assign_to_me'),
    path('tickets/<str:pk>/messages/', api_views.TicketAPIMessagesView.as_view(), name='ticket_messages'),

    # Usuários
    path('agents/', api_views.AgentAPIListView.as_view(), name='agent_list'),
    path('principals/', api_views.PrincipalAPIListView.as_view(), name='principal_list'),
    path('principals/<str:pk>/role/', api_views.PrincipalAPIRoleView.as_view(), name='principal_role'),

    # Notificações (read-all antes de <pk>)
    path('notifications/', api_views.NotificationAPIListView.as_view(), name='notification_list'),
    path('notifications/read-all/', api_views.NotificationAPIReadAllView.as_view(), name='notification_read_all'),
    path('notifications/<str:pk>/read/', api_views.NotificationAPIReadView.as_view(), name='notification_read'),

    # Relatórios
    path('reports/dashboard/', api_views.DashboardAPIView.as_view(), name='report_dashboard'),
    path('reports/agents/', api_views.AgentPerformanceAPIView.as_view(), name='report_agents'),
]
