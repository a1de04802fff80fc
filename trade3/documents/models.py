from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

STATUS_DRAFT = 'DRAFT'
STATUS_SCHEDULED = 'SCHEDULED'
STATUS_COMPLETED = 'COMPLETED'
STATUS_CANCELLED = 'CANCELLED'

STATUS_CHOICES = [
    (STATUS_DRAFT, 'Draft'),
    (STATUS_SCHEDULED, 'Scheduled'),
    (STATUS_COMPLETED, 'Completed'),
    (STATUS_CANCELLED, 'Cancelled'),
]


class Document(models.Model):
    """Fields shared by every document header"""
    code = models.CharField(max_length=50, unique=True)
    date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    notes = models.TextField(blank=True)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.code

    @property
    def is_draft(self):
        return self.status == STATUS_DRAFT

    @property
    def is_completed(self):
        return self.status == STATUS_COMPLETED

    class Meta:
        abstract = True
        ordering = ['-date', '-id']


class DocumentPurchase(Document):
    """Goods received from a vendor"""
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='purchases')
    vendor = models.ForeignKey('parties.Vendor', on_delete=models.PROTECT, null=True, blank=True, related_name='purchases')
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta(Document.Meta):
        db_table = 'document_purchases'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_purchase_status_date'),
        ]


class DocumentPurchaseItem(models.Model):
    document = models.ForeignKey(DocumentPurchase, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='purchase_items')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'document_purchase_items'
        ordering = ['id']
        unique_together = [['document', 'product']]


class DocumentSale(Document):
    """Goods sold to a client through a cashbox"""
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='sales')
    cashbox = models.ForeignKey('locations.Cashbox', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    client = models.ForeignKey('parties.Client', on_delete=models.PROTECT, null=True, blank=True, related_name='sales')
    price_type = models.ForeignKey('catalog.PriceType', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta(Document.Meta):
        db_table = 'document_sales'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_sale_status_date'),
        ]


class DocumentSaleItem(models.Model):
    document = models.ForeignKey(DocumentSale, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='sale_items')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'document_sale_items'
        ordering = ['id']
        unique_together = [['document', 'product']]


class DocumentReturn(Document):
    """Goods brought back by a client"""
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='returns')
    client = models.ForeignKey('parties.Client', on_delete=models.PROTECT, null=True, blank=True, related_name='returns')
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta(Document.Meta):
        db_table = 'document_returns'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_return_status_date'),
        ]


class DocumentReturnItem(models.Model):
    document = models.ForeignKey(DocumentReturn, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='return_items')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'document_return_items'
        ordering = ['id']
        unique_together = [['document', 'product']]


class DocumentAdjustment(Document):
    """Stock count corrections; item quantities are signed"""
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='adjustments')

    class Meta(Document.Meta):
        db_table = 'document_adjustments'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_adjustment_status_date'),
        ]


class DocumentAdjustmentItem(models.Model):
    document = models.ForeignKey(DocumentAdjustment, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='adjustment_items')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    quantity_before = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0.000'))
    quantity_after = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('0.000'))

    class Meta:
        db_table = 'document_adjustment_items'
        ordering = ['id']
        unique_together = [['document', 'product']]


class DocumentTransfer(Document):
    """Goods moved from one store to another"""
    store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='transfers_out')
    destination_store = models.ForeignKey('locations.Store', on_delete=models.PROTECT, related_name='transfers_in')

    class Meta(Document.Meta):
        db_table = 'document_transfers'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_transfer_status_date'),
        ]


class DocumentTransferItem(models.Model):
    document = models.ForeignKey(DocumentTransfer, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='transfer_items')
    quantity = models.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        db_table = 'document_transfer_items'
        ordering = ['id']
        unique_together = [['document', 'product']]


class DocumentPriceChange(Document):
    """Revaluation of product prices per price type"""
    document_purchase = models.OneToOneField(
        DocumentPurchase, on_delete=models.SET_NULL, null=True, blank=True, related_name='price_change'
    )

    class Meta(Document.Meta):
        db_table = 'document_price_changes'
        indexes = [
            models.Index(fields=['status', 'date'], name='idx_pricechange_status_date'),
        ]


class DocumentPriceChangeItem(models.Model):
    document = models.ForeignKey(DocumentPriceChange, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='price_change_items')
    price_type = models.ForeignKey('catalog.PriceType', on_delete=models.PROTECT, related_name='price_change_items')
    old_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    new_value = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'document_price_change_items'
        ordering = ['id']
        unique_together = [['document', 'product', 'price_type']]


class DocumentHistory(models.Model):
    """Audit trail of document changes; rows survive document deletion"""
    ACTION_CREATED = 'CREATED'
    ACTION_UPDATED = 'UPDATED'
    ACTION_STATUS_CHANGED = 'STATUS_CHANGED'
    ACTION_ITEM_ADDED = 'ITEM_ADDED'
    ACTION_ITEM_REMOVED = 'ITEM_REMOVED'
    ACTION_ITEM_CHANGED = 'ITEM_CHANGED'
    ACTION_DELETED = 'DELETED'

    ACTION_CHOICES = [
        (ACTION_CREATED, 'Created'),
        (ACTION_UPDATED, 'Updated'),
        (ACTION_STATUS_CHANGED, 'Status changed'),
        (ACTION_ITEM_ADDED, 'Item added'),
        (ACTION_ITEM_REMOVED, 'Item removed'),
        (ACTION_ITEM_CHANGED, 'Item changed'),
        (ACTION_DELETED, 'Deleted'),
    ]

    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    details = models.JSONField(default=dict, blank=True)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    document_purchase = models.ForeignKey(DocumentPurchase, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    document_sale = models.ForeignKey(DocumentSale, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    document_return = models.ForeignKey(DocumentReturn, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    document_adjustment = models.ForeignKey(DocumentAdjustment, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    document_transfer = models.ForeignKey(DocumentTransfer, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    document_price_change = models.ForeignKey(DocumentPriceChange, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} at {self.created_at}"

    class Meta:
        db_table = 'document_history'
        verbose_name_plural = 'document history'
        ordering = ['created_at', 'id']
