from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        ('shipping', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sub_carrier_code', models.CharField(max_length=32)),
                ('tracking_code', models.CharField(max_length=64)),
                ('status', models.CharField(choices=[('PREPARING', 'Preparing'), ('SHIPPED', 'Shipped'), ('DELIVERED', 'Delivered'), ('RETURNED', 'Returned'), ('CANCELLED', 'Cancelled')], default='PREPARING', max_length=20)),
                ('fest_status_code', models.CharField(blank=True, max_length=8, null=True)),
                ('amount_type_id', models.PositiveSmallIntegerField()),
                ('cod_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('last_movement_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to='shipping.shippingcompany')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to='orders.order')),
            ],
            options={
                'db_table': 'shipments',
                'unique_together': {('company', 'tracking_code')},
                'indexes': [models.Index(fields=['status', 'last_movement_date'], name='shipments_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='ConsignmentAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sub_carrier_code', models.CharField(max_length=32)),
                ('state', models.CharField(choices=[('PENDING', 'Pending'), ('ACCEPTED', 'Accepted'), ('FAILED', 'Failed'), ('CANCEL_REQUESTED', 'Cancel requested'), ('CANCELLED', 'Cancelled')], default='PENDING', max_length=20)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_error', models.TextField(blank=True)),
                ('tracking_code', models.CharField(blank=True, max_length=64)),
                ('payload', models.JSONField(default=dict)),
                ('submission_key', models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='shipping.shippingcompany')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='consignment_attempts', to='orders.order')),
                ('shipment', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='attempt', to='fulfillment.shipment')),
            ],
            options={
                'db_table': 'consignment_attempts',
                'indexes': [models.Index(fields=['order', '-created_at'], name='attempts_order_idx')],
            },
        ),
    ]
