"""
Django REST Framework ViewSets for Storefront API.

Публичные endpoints читают каталог; админские (promote/demote/reorder,
repair, recount) вызывают MerchandisingService и доступны только staff.
Ошибки каталога превращаются в HTTP-ответы в storefront.api_errors.
"""

from django.core.cache import cache
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from .exceptions import ValidationError
from .models import Category, Product, SubCategory
from .serializers import (
    CategorySerializer,
    FeaturedProductSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductPlacementSerializer,
    ProductReorderSerializer,
    RankSerializer,
    RepairProductRanksSerializer,
    ShowcaseCategorySerializer,
    SubCategorySerializer,
    VariantQuerySerializer,
)
from .services.catalog import clamp_quantity, ensure_quantity
from .services.catalog_helpers import get_featured_products_cached, get_showcase_categories_cached
from .services.merchandising import get_service

ADMIN_ACTIONS = {'promote', 'demote', 'reorder', 'repair_ranks', 'recount'}


def _rank_payload(result):
    return {
        'success': True,
        'id': result.item_id,
        'rank': result.rank,
        'writes': result.writes,
    }


def _repair_payload(report):
    return {
        'success': True,
        'scope': report.scope,
        'changed': report.changed,
        'changes': [
            {'id': item_id, 'old_rank': old_rank, 'new_rank': new_rank}
            for item_id, old_rank, new_rank in report.changes
        ],
        'cleared': report.cleared,
    }


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class MerchandisingViewSetMixin:
    """
    Staff-only admin actions, public reads.
    """
    lookup_value_regex = r'\d+'

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAdminUser()]
        return [AllowAny()]

    def object_id(self):
        return int(self.kwargs[self.lookup_url_kwarg or self.lookup_field])

    @property
    def service(self):
        return get_service()


class CategoryViewSet(MerchandisingViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet для категорий товаров.

    Предоставляет:
        - list: GET /api/categories/ - активные категории в порядке меню
        - retrieve: GET /api/categories/{id}/
        - showcase: GET /api/categories/showcase/ - витрина главной страницы
        - promote / demote / reorder: POST /api/categories/{id}/... (staff)
        - repair_ranks: POST /api/categories/repair-ranks/ (staff)
        - recount: POST /api/categories/{id}/recount/ (staff)
    """
    serializer_class = CategorySerializer

    def get_queryset(self):
        return Category.objects.filter(is_active=True).order_by('order', 'name')

    @action(detail=False, methods=['get'], url_path='showcase')
    def showcase(self, request):
        categories = get_showcase_categories_cached(cache)
        serializer = ShowcaseCategorySerializer(categories, many=True)
        return Response({
            'success': True,
            'categories': serializer.data,
            'count': len(serializer.data),
        })

    @action(detail=True, methods=['post'])
    def promote(self, request, pk=None):
        return Response(_rank_payload(self.service.promote_category(self.object_id())))

    @action(detail=True, methods=['post'])
    def demote(self, request, pk=None):
        return Response(_rank_payload(self.service.demote_category(self.object_id())))

    @action(detail=True, methods=['post'])
    def reorder(self, request, pk=None):
        """
        Body: {"rank": 2}. Ранг вне 1..N -> 400.
        """
        data = _validated(RankSerializer, request.data)
        return Response(_rank_payload(self.service.reorder_category(self.object_id(), data['rank'])))

    @action(detail=False, methods=['post'], url_path='repair-ranks')
    def repair_ranks(self, request):
        return Response(_repair_payload(self.service.repair_category_ranks()))

    @action(detail=True, methods=['post'])
    def recount(self, request, pk=None):
        counts = self.service.recount_category(self.object_id())
        return Response({'success': True, 'id': self.object_id(), **counts})


class SubCategoryViewSet(MerchandisingViewSetMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = SubCategorySerializer

    def get_queryset(self):
        return SubCategory.objects.filter(is_active=True).select_related('category')

    @action(detail=True, methods=['post'])
    def recount(self, request, pk=None):
        counts = self.service.recount_sub_category(self.object_id())
        return Response({'success': True, 'id': self.object_id(), **counts})


class ProductViewSet(MerchandisingViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet для товаров.

    Предоставляет:
        - list / retrieve: GET /api/products/, /api/products/{id}/
        - variant: GET /api/products/{id}/variant/?size=&color=&quantity=
        - featured: GET /api/products/featured/?category=ID
        - promote / demote / reorder: POST /api/products/{id}/... (staff)
        - repair_ranks: POST /api/products/repair-ranks/ (staff)
    """

    def get_queryset(self):
        return Product.objects.filter(is_active=True).select_related('category', 'sub_category')

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductListSerializer

    @action(detail=True, methods=['get'])
    def variant(self, request, pk=None):
        """
        Цена, наличие и изображения выбранной пары размер/цвет.

        Returns:
            - 200: VariantResolution
            - 409: товара нет в наличии (quantity урезается до остатка, если он есть)
        """
        params = _validated(VariantQuerySerializer, request.query_params)
        product = self.get_object()
        resolution = self.service.resolve_variant(
            product,
            size_id=params.get('size'),
            color_id=params.get('color'),
        )
        payload = resolution.as_dict()
        if 'quantity' in params:
            requested = params['quantity']
            if resolution.stock:
                payload['quantity'] = clamp_quantity(resolution, requested)
                payload['is_clamped'] = payload['quantity'] < requested
            else:
                payload['quantity'] = ensure_quantity(resolution, requested)
        return Response({'success': True, **payload})

    @action(detail=False, methods=['get'], url_path='featured')
    def featured(self, request):
        category_id = request.query_params.get('category', '')
        if not category_id.isdigit():
            raise ValidationError("category query parameter is required")
        products = get_featured_products_cached(int(category_id), cache)
        serializer = FeaturedProductSerializer(products, many=True)
        return Response({
            'success': True,
            'products': serializer.data,
            'count': len(serializer.data),
        })

    def _category_for(self, data):
        if data.get('category') is not None:
            return data['category']
        return self.service.gateway.get('products', self.object_id())['category_id']

    @action(detail=True, methods=['post'])
    def promote(self, request, pk=None):
        data = _validated(ProductPlacementSerializer, request.data)
        result = self.service.promote_product(self.object_id(), self._category_for(data))
        return Response(_rank_payload(result))

    @action(detail=True, methods=['post'])
    def demote(self, request, pk=None):
        data = _validated(ProductPlacementSerializer, request.data)
        result = self.service.demote_product(self.object_id(), self._category_for(data))
        return Response(_rank_payload(result))

    @action(detail=True, methods=['post'])
    def reorder(self, request, pk=None):
        data = _validated(ProductReorderSerializer, request.data)
        result = self.service.reorder_product(self.object_id(), self._category_for(data), data['rank'])
        return Response(_rank_payload(result))

    @action(detail=False, methods=['post'], url_path='repair-ranks')
    def repair_ranks(self, request):
        data = _validated(RepairProductRanksSerializer, request.data)
        report = self.service.repair_product_ranks(data['category'])
        return Response(_repair_payload(report), status=status.HTTP_200_OK)
