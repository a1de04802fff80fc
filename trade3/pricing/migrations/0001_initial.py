import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('documents', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PriceLedger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('value_before', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('value', models.DecimalField(decimal_places=2, max_digits=12)),
                ('date', models.DateTimeField()),
                ('batch_id', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('document_price_change', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documentpricechange')),
                ('price_type', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='price_ledger', to='catalog.pricetype')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='price_ledger', to='catalog.product')),
            ],
            options={
                'db_table': 'price_ledger',
                'ordering': ['-date', '-id'],
                'indexes': [models.Index(fields=['product', 'price_type', 'date'], name='idx_priceledger_product_date')],
            },
        ),
    ]
