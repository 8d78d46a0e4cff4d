"""
Migration inicial do help desk.

Cria as tabelas:
- principals: Identidades e papéis
- tickets: Tickets (número único, versão)
- ticket_messages: Mensagens append-only
- notifications: Feed (único por evento/destinatário)
- domain_events: Event Store
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


ROLE_CHOICES = [
    ('staff', 'Staff'),
    ('agent', 'Agent'),
    ('it-agent', 'IT Agent'),
    ('facility-agent', 'Facility Agent'),
    ('admin', 'Admin'),
]

TYPE_CHOICES = [
    ('IT Support', 'IT Support'),
    ('Facility', 'Facility'),
]

STATUS_CHOICES = [
    ('Open', 'Open'),
    ('In Progress', 'In Progress'),
    ('Pending', 'Pending'),
    ('Resolved', 'Resolved'),
    ('Closed', 'Closed'),
    ('Urgent', 'Urgent'),
]

PRIORITY_CHOICES = [
    ('Low', 'Low'),
    ('Medium', 'Medium'),
    ('High', 'High'),
    ('Critical', 'Critical'),
]


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: principals
        # =================================================================
        migrations.CreateModel(
            name='PrincipalModel',
            fields=[
                ('id', models.CharField(
                    max_length=128,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='ID do provedor de autenticação'
                )),
                ('email', models.CharField(max_length=254, blank=True, db_index=True)),
                ('display_name', models.CharField(max_length=120)),
                ('role', models.CharField(
                    max_length=20,
                    choices=ROLE_CHOICES,
                    default='staff',
                    db_index=True,
                )),
                ('department', models.CharField(max_length=120, null=True, blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Principal',
                'verbose_name_plural': 'Principals',
                'db_table': 'principals',
                'ordering': ['display_name', 'id'],
            },
        ),

        # =================================================================
        # Tabela: tickets
        # =================================================================
        migrations.CreateModel(
            name='TicketModel',
            fields=[
                ('id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='UUID único do ticket'
                )),
                ('number', models.CharField(
                    max_length=32,
                    unique=True,
                    help_text='Número legível do ticket'
                )),
                ('type', models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)),
                ('subject', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('category', models.CharField(max_length=100, default='General')),
                ('status', models.CharField(
                    max_length=20,
                    choices=STATUS_CHOICES,
                    default='Open',
                    db_index=True,
                    help_text='Estado atual do ticket'
                )),
                ('priority', models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='Medium')),
                ('created_by', models.CharField(max_length=128, db_index=True)),
                ('created_by_name', models.CharField(max_length=120, blank=True)),
                ('created_by_email', models.CharField(max_length=254, blank=True)),
                ('assigned_to', models.CharField(max_length=128, null=True, blank=True, db_index=True)),
                ('assigned_to_name', models.CharField(max_length=120, null=True, blank=True)),
                ('attachments', models.JSONField(default=list, blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, db_index=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('version', models.PositiveIntegerField(default=1)),
            ],
            options={
                'verbose_name': 'Ticket',
                'verbose_name_plural': 'Tickets',
                'db_table': 'tickets',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='tickets_status_e2c6b1_idx'),
                    models.Index(fields=['type', 'created_at'], name='tickets_type_4b1f0a_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='tickets_assigne_7d2e3c_idx'),
                    models.Index(fields=['created_by', 'created_at'], name='tickets_created_9a8f21_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: ticket_messages
        # =================================================================
        migrations.CreateModel(
            name='MessageModel',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False, editable=False)),
                ('sender_id', models.CharField(max_length=128, db_index=True)),
                ('sender_name', models.CharField(max_length=120, blank=True)),
                ('sender_role', models.CharField(max_length=20, blank=True)),
                ('body', models.TextField()),
                ('is_internal', models.BooleanField(default=False)),
                ('is_system', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ticket', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='messages',
                    to='helpdesk.ticketmodel',
                )),
            ],
            options={
                'verbose_name': 'Mensagem',
                'verbose_name_plural': 'Mensagens',
                'db_table': 'ticket_messages',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['ticket', 'created_at'], name='ticket_mess_ticket__5c3d8e_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: notifications
        # =================================================================
        migrations.CreateModel(
            name='NotificationModel',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False, editable=False)),
                ('recipient_id', models.CharField(max_length=128)),
                ('ticket_id', models.CharField(max_length=36, db_index=True)),
                ('ticket_number', models.CharField(max_length=32)),
                ('kind', models.CharField(max_length=30)),
                ('message', models.CharField(max_length=300)),
                ('event_id', models.CharField(max_length=36)),
                ('read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('read_at', models.DateTimeField(null=True, blank=True)),
            ],
            options={
                'verbose_name': 'Notificação',
                'verbose_name_plural': 'Notificações',
                'db_table': 'notifications',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['recipient_id', 'read', 'created_at'], name='notificatio_recipie_1f7a2b_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('event_id', 'recipient_id'),
                        name='unique_notification_per_event_recipient',
                    ),
                ],
            },
        ),

        # =================================================================
        # Tabela: domain_events (Event Store)
        # =================================================================
        migrations.CreateModel(
            name='DomainEventModel',
            fields=[
                ('event_id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    help_text='UUID único do evento'
                )),
                ('event_type', models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text='Tipo do evento (ex: TicketCreated)'
                )),
                ('aggregate_type', models.CharField(max_length=100, db_index=True)),
                ('aggregate_id', models.CharField(max_length=128, db_index=True)),
                ('event_data', models.JSONField(default=dict)),
                ('version', models.IntegerField(default=1, help_text='Versão do schema do evento')),
                ('actor_id', models.CharField(max_length=128, blank=True, db_index=True)),
                ('occurred_at', models.DateTimeField()),
                ('recorded_at', models.DateTimeField(auto_now_add=True)),
                ('sequence', models.BigIntegerField(default=0, help_text='Sequência do evento no agregado')),
            ],
            options={
                'verbose_name': 'Evento de Domínio',
                'verbose_name_plural': 'Eventos de Domínio',
                'db_table': 'domain_events',
                'ordering': ['occurred_at', 'sequence'],
                'indexes': [
                    models.Index(fields=['aggregate_id', 'sequence'], name='domain_even_aggrega_3e9b4c_idx'),
                    models.Index(fields=['event_type', 'recorded_at'], name='domain_even_event_t_8c1d5f_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('aggregate_id', 'sequence'),
                        name='unique_event_sequence_per_aggregate',
                    ),
                ],
            },
        ),
    ]
