#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Executa migrations
3. Garante o administrador padrão (DEFAULT_ADMIN_ID / DEFAULT_ADMIN_EMAIL)
4. Cria dados de exemplo (opcional)

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import argparse
import os


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'campusdesk.config.settings')

    import django
    django.setup()


def run_migrations():
    """Executa migrations."""
    from django.core.management import call_command

    print("📦 Executando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations concluídas!")


def ensure_admin():
    """Garante o administrador padrão."""
    from django.conf import settings

    from campusdesk.config.container import get_container

    admin = get_container().bootstrap_admin_service().execute(
        settings.DEFAULT_ADMIN_ID,
        settings.DEFAULT_ADMIN_EMAIL,
    )
    print(f"👤 Administrador: {admin.display_name} <{admin.email}> ({admin.role})")


SAMPLE_PRINCIPALS = [
    ('staff-001', 'maria.silva@school.edu', 'Maria Silva'),
    ('staff-002', 'joao.souza@school.edu', 'João Souza'),
    ('it-001', 'ana.lima@school.edu', 'Ana Lima'),
    ('facility-001', 'pedro.costa@school.edu', 'Pedro Costa'),
]

SAMPLE_ROLES = {
    'it-001': 'it-agent',
    'facility-001': 'facility-agent',
}

SAMPLE_TICKETS = [
    {
        'creator': 'staff-001',
        'ticket_type': 'IT Support',
        'subject': 'Projetor da sala 12 não liga',
        'description': 'O projetor da sala 12 não liga desde segunda-feira. A luz de energia pisca em vermelho.',
        'priority': 'High',
        'agent': 'it-001',
    },
    {
        'creator': 'staff-002',
        'ticket_type': 'IT Support',
        'subject': 'Sem acesso ao Wi-Fi da biblioteca',
        'description': 'Notebooks dos alunos não conectam na rede da biblioteca.',
        'priority': 'Medium',
    },
    {
        'creator': 'staff-001',
        'ticket_type': 'Facility',
        'subject': 'Vazamento no banheiro do bloco B',
        'description': 'Há um vazamento embaixo da pia do banheiro masculino do bloco B.',
        'priority': 'Critical',
        'agent': 'facility-001',
    },
    {
        'creator': 'staff-002',
        'ticket_type': 'Facility',
        'subject': 'Cadeiras quebradas na sala 5',
        'description': 'Três cadeiras da sala 5 estão com o encosto solto.',
        'priority': 'Low',
    },
]


def create_sample_data():
    """Cria usuários e tickets de exemplo via Workflow Engine."""
    from django.conf import settings

    from campusdesk.config.container import get_container
    from campusdesk.core.tickets.dtos import CreateTicketInputDTO

    container = get_container()
    resolver = container.identity_resolver()
    admin_session = resolver.start_session(settings.DEFAULT_ADMIN_ID, settings.DEFAULT_ADMIN_EMAIL)

    print("📝 Criando usuários de exemplo...")
    sessions = {}
    for principal_id, email, name in SAMPLE_PRINCIPALS:
        sessions[principal_id] = resolver.start_session(principal_id, email, name)
        role = SAMPLE_ROLES.get(principal_id)
        if role:
            container.change_role_service().execute(admin_session, principal_id, role)
        print(f"   ✓ {name} ({role or 'staff'})")

    print("📝 Criando tickets de exemplo...")
    for data in SAMPLE_TICKETS:
        data = dict(data)
        creator = data.pop('creator')
        agent = data.pop('agent', None)

        engine = container.workflow_engine()
        ticket = engine.file_ticket(sessions[creator], CreateTicketInputDTO(**data))
        if agent:
            engine.assign_to_me(sessions[agent], ticket.id)
            engine.respond(sessions[agent], ticket.id, "Estamos verificando, obrigado pelo aviso.")
        print(f"   ✓ {ticket.number} {ticket.subject[:50]}")

    for session in sessions.values():
        resolver.end_session(session)
    resolver.end_session(admin_session)

    print(f"✅ {len(SAMPLE_TICKETS)} tickets criados!")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import DatabaseError, connection

    print("🔍 Verificando conexão com o banco...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexão OK!")
        return True
    except DatabaseError as e:
        print(f"❌ Erro de conexão: {e}")
        return False


def show_info():
    """Mostra informações do setup."""
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Event Publisher: {settings.EVENT_PUBLISHER_MODE}")
    print(f"  Debug Mode: {settings.DEBUG}")
    print("=" * 60)
    print("\n🚀 Próximos passos:")
    print("   1. django-admin runserver --settings=campusdesk.config.settings")
    print("   2. Acesse: http://localhost:8000/admin/")
    print("   3. Acesse: http://localhost:8000/api/tickets/ (headers X-Principal-*)")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desenvolvimento')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Criar dados de exemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Apenas verificar conexão'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 CampusDesk - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        print("   Sem DATABASE_URL/DATABASE_HOST o SQLite local é usado.")
        return

    run_migrations()
    ensure_admin()

    if args.with_sample_data:
        create_sample_data()

    show_info()


if __name__ == '__main__':
    main()
