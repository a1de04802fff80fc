from decimal import Decimal

from django.db import models


class Stock(models.Model):
    """Current quantity and weighted average purchase price per product and store"""
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='stocks')
    store = models.ForeignKey('locations.Store', on_delete=models.CASCADE, related_name='stocks')
    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0.000'))
    average_purchase_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product_id}@{self.store_id}: {self.quantity}"

    class Meta:
        db_table = 'stocks'
        ordering = ['store_id', 'product_id']
        unique_together = [['product', 'store']]
        indexes = [
            models.Index(fields=['store'], name='idx_stock_store'),
        ]


class StockLedger(models.Model):
    """Append-only journal of stock movements"""
    TYPE_PURCHASE = 'PURCHASE'
    TYPE_SALE = 'SALE'
    TYPE_RETURN = 'RETURN'
    TYPE_ADJUSTMENT = 'ADJUSTMENT'
    TYPE_TRANSFER_IN = 'TRANSFER_IN'
    TYPE_TRANSFER_OUT = 'TRANSFER_OUT'

    TYPE_CHOICES = [
        (TYPE_PURCHASE, 'Purchase'),
        (TYPE_SALE, 'Sale'),
        (TYPE_RETURN, 'Return'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
        (TYPE_TRANSFER_IN, 'Transfer in'),
        (TYPE_TRANSFER_OUT, 'Transfer out'),
    ]

    REASON_INITIAL = 'INITIAL'
    REASON_REVERSAL = 'REVERSAL'
    REASON_CORRECTION = 'CORRECTION'

    REASON_CHOICES = [
        (REASON_INITIAL, 'Initial'),
        (REASON_REVERSAL, 'Reversal'),
        (REASON_CORRECTION, 'Correction'),
    ]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    reason = models.CharField(max_length=20, choices=REASON_CHOICES, default=REASON_INITIAL)
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='ledger_entries')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='ledger_entries')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    quantity_before = models.DecimalField(max_digits=14, decimal_places=3)
    quantity_after = models.DecimalField(max_digits=14, decimal_places=3)
    average_purchase_price = models.DecimalField(max_digits=12, decimal_places=2)
    # qty (3 dp) * price (2 dp) is stored without rounding
    transaction_amount = models.DecimalField(max_digits=20, decimal_places=5)
    date = models.DateTimeField()
    batch_id = models.CharField(max_length=64, blank=True)
    causation_id = models.CharField(max_length=64, blank=True)
    parent = models.ForeignKey('self', on_delete=models.PROTECT, null=True, blank=True, related_name='children')
    document_purchase = models.ForeignKey('documents.DocumentPurchase', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries')
    document_sale = models.ForeignKey('documents.DocumentSale', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries')
    document_return = models.ForeignKey('documents.DocumentReturn', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries')
    document_adjustment = models.ForeignKey('documents.DocumentAdjustment', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries')
    document_transfer = models.ForeignKey('documents.DocumentTransfer', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type}/{self.reason} {self.quantity} of {self.product_id}@{self.store_id}"

    @property
    def document(self):
        return (
            self.document_purchase or self.document_sale or self.document_return
            or self.document_adjustment or self.document_transfer
        )

    class Meta:
        db_table = 'stock_ledger'
        ordering = ['date', 'id']
        indexes = [
            models.Index(fields=['store', 'product', 'date'], name='idx_ledger_store_product_date'),
            models.Index(fields=['batch_id'], name='idx_ledger_batch'),
        ]
