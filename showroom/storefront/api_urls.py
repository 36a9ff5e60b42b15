"""
Django REST Framework API URLs with Router.

Автоматически генерирует URL patterns для ViewSets.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .viewsets import (
    CategoryViewSet,
    ProductViewSet,
    SubCategoryViewSet,
)


# Создаем Router
router = DefaultRouter()

# Регистрируем ViewSets
router.register(r'categories', CategoryViewSet, basename='api-category')
router.register(r'subcategories', SubCategoryViewSet, basename='api-subcategory')
router.register(r'products', ProductViewSet, basename='api-product')

# URL patterns
urlpatterns = [
    path('', include(router.urls)),
]

# Автоматически созданные URLs:
# GET    /api/categories/                      - Активные категории
# GET    /api/categories/showcase/             - Витрина главной
# POST   /api/categories/{id}/promote/         - Добавить на витрину
# POST   /api/categories/{id}/demote/          - Убрать с витрины
# POST   /api/categories/{id}/reorder/         - Переместить на позицию
# POST   /api/categories/repair-ranks/         - Восстановить ранги витрины
# POST   /api/categories/{id}/recount/         - Пересчитать счетчики
# POST   /api/subcategories/{id}/recount/      - Пересчитать счетчик товаров
# GET    /api/products/{id}/                   - Детали товара
# GET    /api/products/{id}/variant/           - Выбор размера/цвета
# GET    /api/products/featured/?category=ID   - Избранные товары категории
# POST   /api/products/{id}/promote|demote|reorder/
# POST   /api/products/repair-ranks/           - Восстановить ранги избранных
