# Generated manually for the expenses app

import uuid
import apps.expenses.models
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('groups', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ExpenseRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.BigIntegerField()),
                ('currency', models.CharField(default=apps.expenses.models.default_currency, max_length=3)),
                ('description', models.CharField(blank=True, max_length=200)),
                ('split_type', models.CharField(choices=[('equal', 'Equal'), ('exact', 'Exact amounts'), ('percentage', 'Percentage')], default='equal', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expenses', to='groups.group')),
                ('paid_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='expenses_paid', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'expense_records',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['group', 'created_at'], name='expense_group_created_idx'),
                    models.Index(fields=['paid_by', 'created_at'], name='expense_payer_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='expense_amount_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SplitItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owed_amount', models.BigIntegerField()),
                ('position', models.PositiveSmallIntegerField(default=0)),
                ('expense', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='splits', to='expenses.expenserecord')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='expense_splits', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'split_items',
                'ordering': ['expense', 'position'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('owed_amount__gte', 0)), name='split_owed_non_negative'),
                ],
                'unique_together': {('expense', 'user')},
            },
        ),
    ]
