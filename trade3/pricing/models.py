from django.db import models


class PriceLedger(models.Model):
    """History of price values per product and price type"""
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='price_ledger')
    price_type = models.ForeignKey('catalog.PriceType', on_delete=models.CASCADE, related_name='price_ledger')
    value_before = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    value = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateTimeField()
    document_price_change = models.ForeignKey(
        'documents.DocumentPriceChange', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries'
    )
    batch_id = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product_id}/{self.price_type_id}: {self.value_before} -> {self.value}"

    class Meta:
        db_table = 'price_ledger'
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['product', 'price_type', 'date'], name='idx_priceledger_product_date'),
        ]
