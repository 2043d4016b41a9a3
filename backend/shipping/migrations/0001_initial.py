from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ShippingCompany',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('code', models.CharField(max_length=32, unique=True)),
                ('type', models.CharField(choices=[('DIRECT', 'Direct'), ('AGGREGATOR', 'Aggregator')], max_length=16)),
                ('is_active', models.BooleanField(default=True)),
                ('is_default', models.BooleanField(default=False)),
                ('handles_rural_addresses', models.BooleanField(default=False, help_text='Can deliver to addresses flagged as rural')),
                ('pricing_rules', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'shipping_companies',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='SubCarrier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=32)),
                ('name', models.CharField(max_length=120)),
                ('branch_code', models.CharField(blank=True, max_length=32)),
                ('is_active', models.BooleanField(default=True)),
                ('is_cash_on_door_available', models.BooleanField(default=False)),
                ('is_card_on_door_available', models.BooleanField(default=False)),
                ('fixed_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('return_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('card_commission', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=6)),
                ('desi_ranges', models.JSONField(blank=True, default=list)),
                ('cod_ranges', models.JSONField(blank=True, default=list)),
                ('position', models.PositiveIntegerField(default=0)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sub_carriers', to='shipping.shippingcompany')),
            ],
            options={
                'db_table': 'shipping_sub_carriers',
                'ordering': ['position', 'id'],
                'unique_together': {('company', 'code')},
            },
        ),
    ]
