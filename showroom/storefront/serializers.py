"""
Django REST Framework Serializers for Storefront API.

Сериализаторы для преобразования моделей и документов каталога в JSON.
Input-сериализаторы проверяют параметры админских действий.
"""

from rest_framework import serializers

from .models import Category, Product, SubCategory
from .services.catalog import resolve_variant


class CategorySerializer(serializers.ModelSerializer):
    """
    Сериализатор для категорий товаров.

    Счетчики денормализованы и пересчитываются через recount.
    """

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'slug', 'description', 'image_url', 'order',
            'is_showcase', 'showcase_rank', 'showcase_image', 'visible_on_taskbar',
            'featured_product_limit', 'product_count', 'sub_category_count', 'is_active',
        ]
        read_only_fields = fields


class SubCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = SubCategory
        fields = [
            'id', 'category', 'name', 'slug', 'description', 'image_url', 'order',
            'show_badge_on_products', 'visible_on_taskbar', 'product_count', 'is_active',
        ]
        read_only_fields = fields


class ShowcaseCategorySerializer(serializers.Serializer):
    """
    Категория витрины (документ из RankLedger).
    """
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    slug = serializers.SlugField(read_only=True)
    image_url = serializers.CharField(read_only=True)
    showcase_image = serializers.CharField(read_only=True, allow_null=True)
    showcase_rank = serializers.IntegerField(read_only=True, allow_null=True)


class FeaturedProductSerializer(serializers.Serializer):
    """
    Избранный товар категории (документ из RankLedger) с ценой по умолчанию.
    """
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    slug = serializers.SlugField(read_only=True)
    primary_image_url = serializers.CharField(read_only=True)
    featured_rank = serializers.IntegerField(read_only=True, allow_null=True)
    price = serializers.SerializerMethodField()
    is_available = serializers.SerializerMethodField()

    def _resolution(self, obj):
        cache = self.context.setdefault('_resolutions', {})
        if obj['id'] not in cache:
            cache[obj['id']] = resolve_variant(obj)
        return cache[obj['id']]

    def get_price(self, obj):
        return self._resolution(obj).price

    def get_is_available(self, obj):
        return self._resolution(obj).is_available


class ProductListSerializer(serializers.ModelSerializer):
    """
    Сериализатор для списка товаров (минимальная информация).

    Цена и наличие берутся из первого размера/цвета матрицы вариантов.
    """
    category_name = serializers.CharField(source='category.name', read_only=True)
    price = serializers.SerializerMethodField()
    is_available = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'category', 'category_name', 'sub_category',
            'primary_image_url', 'price', 'is_available', 'is_featured', 'featured_rank',
        ]
        read_only_fields = fields

    def get_price(self, obj):
        return resolve_variant(obj).price

    def get_is_available(self, obj):
        return any(
            quantity > 0
            for color in resolve_variant(obj).colors
            for quantity in color['stock_by_size'].values()
        )


class ProductDetailSerializer(serializers.ModelSerializer):
    """
    Сериализатор для детальной информации о товаре.

    ``sizes``/``colors`` всегда в канонической форме: legacy-товары
    преобразуются при чтении, без записи в базу.
    """
    category = CategorySerializer(read_only=True)
    sizes = serializers.SerializerMethodField()
    colors = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'short_description', 'description',
            'primary_image_url', 'category', 'sub_category', 'sizes', 'colors',
            'is_featured', 'featured_rank', 'is_active',
        ]
        read_only_fields = fields

    def get_sizes(self, obj):
        return resolve_variant(obj).sizes

    def get_colors(self, obj):
        return resolve_variant(obj).colors


# ==================== INPUT SERIALIZERS ====================

class VariantQuerySerializer(serializers.Serializer):
    """
    Параметры выбора варианта.

    Fields:
        - size: ID размера (optional, по умолчанию первый)
        - color: ID цвета (optional, по умолчанию первый)
        - quantity: Количество для проверки наличия (optional)
    """
    size = serializers.CharField(required=False, allow_blank=True, max_length=64)
    color = serializers.CharField(required=False, allow_blank=True, max_length=64)
    quantity = serializers.IntegerField(required=False, min_value=1)


class RankSerializer(serializers.Serializer):
    rank = serializers.IntegerField(required=True)


class ProductPlacementSerializer(serializers.Serializer):
    """
    Категория, в которой меняется ранг товара (по умолчанию - категория товара).
    """
    category = serializers.IntegerField(required=False)


class ProductReorderSerializer(ProductPlacementSerializer):
    rank = serializers.IntegerField(required=True)


class RepairProductRanksSerializer(serializers.Serializer):
    category = serializers.IntegerField(required=True)
