from django.db import models
from django.utils import timezone


class StoreQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)


class Store(models.Model):
    """Retail stores; deleted stores are kept for document history"""
    name = models.CharField(max_length=200, unique=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoreQuerySet.as_manager()

    def __str__(self):
        return self.name

    @property
    def is_usable(self):
        return self.is_active and self.deleted_at is None

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.is_active = False
        self.save(update_fields=['deleted_at', 'is_active', 'updated_at'])

    class Meta:
        db_table = 'stores'
        ordering = ['name']


class Cashbox(models.Model):
    """Cash register belonging to a store"""
    name = models.CharField(max_length=100)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='cashboxes')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.store.name} / {self.name}"

    class Meta:
        db_table = 'cashboxes'
        ordering = ['store_id', 'name']
        unique_together = [['store', 'name']]
