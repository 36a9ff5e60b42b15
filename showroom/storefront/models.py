from django.conf import settings
from django.db import models


def default_featured_limit():
    return getattr(settings, 'SHOWROOM_DEFAULT_FEATURED_LIMIT', 4)


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(unique=True)
    description = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True, verbose_name='Зображення категорії')
    order = models.PositiveIntegerField(default=0)
    # Showcase (homepage) placement
    is_showcase = models.BooleanField(default=False, verbose_name='На головній')
    showcase_rank = models.PositiveIntegerField(blank=True, null=True, verbose_name='Позиція на головній')
    showcase_image = models.CharField(max_length=500, blank=True, null=True, verbose_name='Обкладинка для головної')
    visible_on_taskbar = models.BooleanField(default=True, verbose_name='Показувати в меню')
    featured_product_limit = models.PositiveIntegerField(
        default=default_featured_limit,
        verbose_name='Ліміт обраних товарів',
    )
    # Denormalized counters, recomputable via recount
    product_count = models.PositiveIntegerField(default=0)
    sub_category_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'name']
        verbose_name = 'Категорія'
        verbose_name_plural = 'Категорії'
        indexes = [
            models.Index(fields=['is_active'], name='idx_category_active'),
            models.Index(fields=['is_showcase', 'showcase_rank'], name='idx_category_showcase'),
            models.Index(fields=['order'], name='idx_category_order'),
        ]

    def __str__(self):
        return self.name


class SubCategory(models.Model):
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='sub_categories')
    name = models.CharField(max_length=100)
    slug = models.SlugField()
    description = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True, null=True)
    show_badge_on_products = models.BooleanField(default=True, verbose_name='Бейдж на товарах')
    visible_on_taskbar = models.BooleanField(default=True, verbose_name='Показувати в меню')
    order = models.PositiveIntegerField(default=0)
    product_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'id']
        verbose_name = 'Підкатегорія'
        verbose_name_plural = 'Підкатегорії'
        unique_together = (('category', 'slug'),)
        indexes = [
            models.Index(fields=['category', 'order'], name='idx_subcategory_order'),
        ]

    def __str__(self):
        return f'{self.category.name}: {self.name}'


class Product(models.Model):
    name = models.CharField(max_length=200)
    slug = models.SlugField(unique=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    sub_category = models.ForeignKey(
        SubCategory,
        on_delete=models.PROTECT,
        related_name='products',
        null=True,
        blank=True,
    )
    short_description = models.CharField(max_length=300, blank=True)
    description = models.TextField(blank=True)
    primary_image_url = models.CharField(max_length=500, blank=True)

    # Canonical variant matrix: price lives on size, images and stock on colour.
    size_variants = models.JSONField(blank=True, default=list, verbose_name='Розміри')
    color_variants = models.JSONField(blank=True, default=list, verbose_name='Кольори')

    # Legacy single-variant fields, read only through the legacy upgrader
    price = models.PositiveIntegerField(blank=True, null=True, verbose_name='Ціна (legacy)')
    compare_at_price = models.PositiveIntegerField(blank=True, null=True, verbose_name='Стара ціна (legacy)')
    stock_quantity = models.PositiveIntegerField(default=0, verbose_name='Залишок (legacy)')
    images = models.JSONField(blank=True, default=list, verbose_name='Зображення (legacy)')
    color = models.CharField(max_length=50, blank=True, null=True, verbose_name='Колір (legacy)')
    sku = models.CharField(max_length=64, blank=True, verbose_name='SKU')

    is_featured = models.BooleanField(default=False)
    featured_rank = models.PositiveIntegerField(blank=True, null=True, verbose_name='Позиція серед обраних')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Товар'
        verbose_name_plural = 'Товари'
        indexes = [
            models.Index(fields=['category', 'is_featured', 'featured_rank'], name='idx_product_featured'),
            models.Index(fields=['category', 'is_active'], name='idx_product_category_active'),
            models.Index(fields=['sub_category', 'is_active'], name='idx_product_subcat_active'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_legacy(self):
        """True while the record still uses the single price/stock/image shape."""
        return not (self.size_variants and self.color_variants)
