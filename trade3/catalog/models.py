from django.db import models


class Category(models.Model):
    """Product categories (tree)"""
    name = models.CharField(max_length=200, unique=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_descendant_ids(self):
        """IDs of this category and every category below it"""
        ids = [self.pk]
        frontier = [self.pk]
        while frontier:
            frontier = list(
                Category.objects.filter(parent_id__in=frontier).exclude(pk__in=ids).values_list('pk', flat=True)
            )
            ids.extend(frontier)
        return ids

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """Product master"""
    name = models.CharField(max_length=200, db_index=True)
    code = models.CharField(max_length=50, unique=True)
    article = models.CharField(max_length=100, blank=True, db_index=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.code} {self.name}"

    class Meta:
        db_table = 'products'
        ordering = ['name']
        unique_together = [['category', 'name']]


class Barcode(models.Model):
    """Barcodes attached to a product"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='barcodes')
    value = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.value

    class Meta:
        db_table = 'barcodes'
        ordering = ['id']


class PriceType(models.Model):
    """Named price list, e.g. Retail or Wholesale"""
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'price_types'
        ordering = ['name']


class Price(models.Model):
    """Current price of a product for a price type; maintained from the price ledger"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='prices')
    price_type = models.ForeignKey(PriceType, on_delete=models.CASCADE, related_name='prices')
    value = models.DecimalField(max_digits=12, decimal_places=2)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} [{self.price_type.name}] = {self.value}"

    class Meta:
        db_table = 'prices'
        ordering = ['product_id', 'price_type_id']
        unique_together = [['product', 'price_type']]
