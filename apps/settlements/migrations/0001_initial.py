# Generated manually for the settlements app

import uuid
import apps.settlements.models
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('paid_pending', 'Paid, awaiting confirmation'),
    ('confirmed', 'Confirmed'),
    ('cancelled', 'Cancelled'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('groups', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SettlementRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.BigIntegerField()),
                ('currency', models.CharField(default=apps.settlements.models.default_currency, max_length=3)),
                ('method', models.CharField(choices=[('upi', 'UPI'), ('cash', 'Cash'), ('other', 'Other')], default='upi', max_length=20)),
                ('note', models.CharField(blank=True, max_length=200)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='pending', max_length=20)),
                ('payment_reference', models.CharField(blank=True, max_length=64)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='settlements_cancelled', to=settings.AUTH_USER_MODEL)),
                ('from_user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='settlements_sent', to=settings.AUTH_USER_MODEL)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='settlements', to='groups.group')),
                ('to_user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='settlements_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'settlement_records',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['group', 'status'], name='settlement_group_status_idx'),
                    models.Index(fields=['from_user', 'status'], name='settlement_from_status_idx'),
                    models.Index(fields=['to_user', 'status'], name='settlement_to_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='settlement_amount_positive'),
                    models.CheckConstraint(condition=models.Q(('from_user', models.F('to_user')), _negated=True), name='settlement_distinct_parties'),
                    models.UniqueConstraint(condition=models.Q(('status__in', ['pending', 'paid_pending'])), fields=('group', 'from_user', 'to_user'), name='settlement_one_open_per_pair'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SettlementEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=[('create', 'Created'), ('mark_paid', 'Marked paid'), ('confirm', 'Confirmed'), ('cancel', 'Cancelled')], max_length=20)),
                ('from_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('payment_reference', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='settlement_events', to=settings.AUTH_USER_MODEL)),
                ('settlement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='settlements.settlementrecord')),
            ],
            options={
                'db_table': 'settlement_events',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['settlement', 'created_at'], name='settlement_event_created_idx'),
                ],
            },
        ),
    ]
