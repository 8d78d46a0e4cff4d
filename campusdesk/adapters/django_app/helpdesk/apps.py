"""
Configuração do Django App do help desk.
"""

from django.apps import AppConfig


class HelpdeskConfig(AppConfig):
    """Configuração do app Helpdesk."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'campusdesk.adapters.django_app.helpdesk'
    label = 'helpdesk'
    verbose_name = 'Help Desk'
