from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=32, unique=True)),
                ('order_id', models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ttl_seconds', models.PositiveIntegerField(default=300)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('service_id', models.CharField(max_length=64)),
                ('service_name', models.CharField(max_length=255)),
                ('price_minor', models.PositiveIntegerField()),
                ('phone', models.CharField(db_index=True, max_length=32)),
                ('client_address', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('back_url', models.CharField(blank=True, default='', max_length=512)),
                ('return_url', models.CharField(blank=True, default='', max_length=1024)),
                ('form_url', models.CharField(blank=True, default='', max_length=1024)),
                ('register_payload', models.JSONField(blank=True, null=True)),
                ('settlement_sent', models.BooleanField(default=False)),
                ('settlement_doc_id', models.CharField(blank=True, default='', max_length=64)),
                ('settlement_at', models.DateTimeField(blank=True, null=True)),
                ('settlement_result', models.JSONField(blank=True, null=True)),
                ('finalized', models.BooleanField(default=False)),
                ('cancelled_by_expiry', models.BooleanField(default=False)),
                ('marked_paid_manually', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ('-created_at',),
            },
        ),
        migrations.CreateModel(
            name='DeclinedOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reason', models.CharField(choices=[('ttl', 'TTL expired on status check'), ('sweep', 'TTL expired on sweep')], default='ttl', max_length=16)),
                ('order_id', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('order_number', models.CharField(db_index=True, max_length=32)),
                ('phone', models.CharField(blank=True, default='', max_length=32)),
                ('client_address', models.CharField(blank=True, default='', max_length=64)),
                ('price_minor', models.PositiveIntegerField(default=0)),
                ('decline_result', models.JSONField(blank=True, null=True)),
            ],
            options={
                'ordering': ('-created_at',),
            },
        ),
        migrations.CreateModel(
            name='SettlementAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('order_id', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('order_number', models.CharField(db_index=True, max_length=32)),
                ('doc_id', models.CharField(blank=True, default='', max_length=64)),
                ('context', models.CharField(choices=[('status', 'Status poll'), ('manual', 'Manual mark paid')], default='status', max_length=16)),
                ('request_body', models.JSONField(blank=True, null=True)),
                ('response_status', models.PositiveIntegerField(blank=True, null=True)),
                ('response_body', models.JSONField(blank=True, null=True)),
                ('ok', models.BooleanField(default=False)),
                ('error', models.TextField(blank=True, default='')),
            ],
            options={
                'ordering': ('-created_at',),
            },
        ),
    ]
