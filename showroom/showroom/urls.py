from django.urls import path, include
from django.contrib import admin

urlpatterns = [
    path("admin/", admin.site.urls),

    # REST API каталога (витрина, избранные товары, варианты)
    path("api/", include("storefront.api_urls")),
]
