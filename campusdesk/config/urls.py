"""
URL Configuration do CampusDesk.

Estrutura:
- /admin/ - Django Admin
- /api/ - API JSON do help desk
- /health/ - Health check
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('campusdesk.adapters.django_app.helpdesk.urls')),
    path('health/', health, name='health'),
]
