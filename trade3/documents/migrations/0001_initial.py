import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ('DRAFT', 'Draft'),
    ('SCHEDULED', 'Scheduled'),
    ('COMPLETED', 'Completed'),
    ('CANCELLED', 'Cancelled'),
]


def document_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('code', models.CharField(max_length=50, unique=True)),
        ('date', models.DateTimeField(default=django.utils.timezone.now)),
        ('status', models.CharField(choices=STATUS_CHOICES, default='DRAFT', max_length=20)),
        ('notes', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('locations', '0001_initial'),
        ('parties', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DocumentPurchase',
            fields=document_fields() + [
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to='locations.store')),
                ('vendor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to='parties.vendor')),
            ],
            options={
                'db_table': 'document_purchases',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_purchase_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentPurchaseItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documentpurchase')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchase_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_purchase_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product')},
            },
        ),
        migrations.CreateModel(
            name='DocumentSale',
            fields=document_fields() + [
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cashbox', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales', to='locations.cashbox')),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='parties.client')),
                ('price_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales', to='catalog.pricetype')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='locations.store')),
            ],
            options={
                'db_table': 'document_sales',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_sale_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentSaleItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documentsale')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sale_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_sale_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product')},
            },
        ),
        migrations.CreateModel(
            name='DocumentReturn',
            fields=document_fields() + [
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='returns', to='parties.client')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='returns', to='locations.store')),
            ],
            options={
                'db_table': 'document_returns',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_return_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentReturnItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documentreturn')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='return_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_return_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product')},
            },
        ),
        migrations.CreateModel(
            name='DocumentAdjustment',
            fields=document_fields() + [
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='adjustments', to='locations.store')),
            ],
            options={
                'db_table': 'document_adjustments',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_adjustment_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentAdjustmentItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('quantity_before', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=14)),
                ('quantity_after', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=14)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documentadjustment')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='adjustment_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_adjustment_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product')},
            },
        ),
        migrations.CreateModel(
            name='DocumentTransfer',
            fields=document_fields() + [
                ('destination_store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_in', to='locations.store')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_out', to='locations.store')),
            ],
            options={
                'db_table': 'document_transfers',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_transfer_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentTransferItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documenttransfer')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfer_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_transfer_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product')},
            },
        ),
        migrations.CreateModel(
            name='DocumentPriceChange',
            fields=document_fields() + [
                ('document_purchase', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='price_change', to='documents.documentpurchase')),
            ],
            options={
                'db_table': 'document_price_changes',
                'ordering': ['-date', '-id'],
                'abstract': False,
                'indexes': [models.Index(fields=['status', 'date'], name='idx_pricechange_status_date')],
            },
        ),
        migrations.CreateModel(
            name='DocumentPriceChangeItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('old_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('new_value', models.DecimalField(decimal_places=2, max_digits=12)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.documentpricechange')),
                ('price_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='price_change_items', to='catalog.pricetype')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='price_change_items', to='catalog.product')),
            ],
            options={
                'db_table': 'document_price_change_items',
                'ordering': ['id'],
                'unique_together': {('document', 'product', 'price_type')},
            },
        ),
        migrations.CreateModel(
            name='DocumentHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('CREATED', 'Created'), ('UPDATED', 'Updated'), ('STATUS_CHANGED', 'Status changed'), ('ITEM_ADDED', 'Item added'), ('ITEM_REMOVED', 'Item removed'), ('ITEM_CHANGED', 'Item changed'), ('DELETED', 'Deleted')], max_length=20)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('document_adjustment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documentadjustment')),
                ('document_price_change', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documentpricechange')),
                ('document_purchase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documentpurchase')),
                ('document_return', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documentreturn')),
                ('document_sale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documentsale')),
                ('document_transfer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='history', to='documents.documenttransfer')),
            ],
            options={
                'db_table': 'document_history',
                'verbose_name_plural': 'document history',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
