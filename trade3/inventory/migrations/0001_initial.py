import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('locations', '0001_initial'),
        ('documents', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Stock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=14)),
                ('average_purchase_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stocks', to='catalog.product')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stocks', to='locations.store')),
            ],
            options={
                'db_table': 'stocks',
                'ordering': ['store_id', 'product_id'],
                'unique_together': {('product', 'store')},
                'indexes': [models.Index(fields=['store'], name='idx_stock_store')],
            },
        ),
        migrations.CreateModel(
            name='StockLedger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('PURCHASE', 'Purchase'), ('SALE', 'Sale'), ('RETURN', 'Return'), ('ADJUSTMENT', 'Adjustment'), ('TRANSFER_IN', 'Transfer in'), ('TRANSFER_OUT', 'Transfer out')], max_length=20)),
                ('reason', models.CharField(choices=[('INITIAL', 'Initial'), ('REVERSAL', 'Reversal'), ('CORRECTION', 'Correction')], default='INITIAL', max_length=20)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('quantity_before', models.DecimalField(decimal_places=3, max_digits=14)),
                ('quantity_after', models.DecimalField(decimal_places=3, max_digits=14)),
                ('average_purchase_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('transaction_amount', models.DecimalField(decimal_places=5, max_digits=20)),
                ('date', models.DateTimeField()),
                ('batch_id', models.CharField(blank=True, max_length=64)),
                ('causation_id', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('document_adjustment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documentadjustment')),
                ('document_purchase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documentpurchase')),
                ('document_return', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documentreturn')),
                ('document_sale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documentsale')),
                ('document_transfer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='documents.documenttransfer')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='inventory.stockledger')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='catalog.product')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='locations.store')),
            ],
            options={
                'db_table': 'stock_ledger',
                'ordering': ['date', 'id'],
                'indexes': [
                    models.Index(fields=['store', 'product', 'date'], name='idx_ledger_store_product_date'),
                    models.Index(fields=['batch_id'], name='idx_ledger_batch'),
                ],
            },
        ),
    ]
