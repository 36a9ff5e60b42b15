import django.db.models.deletion
from django.db import migrations, models

import storefront.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('slug', models.SlugField(unique=True)),
                ('description', models.TextField(blank=True)),
                ('image_url', models.CharField(blank=True, max_length=500, verbose_name='Зображення категорії')),
                ('order', models.PositiveIntegerField(default=0)),
                ('is_showcase', models.BooleanField(default=False, verbose_name='На головній')),
                ('showcase_rank', models.PositiveIntegerField(blank=True, null=True, verbose_name='Позиція на головній')),
                ('showcase_image', models.CharField(blank=True, max_length=500, null=True, verbose_name='Обкладинка для головної')),
                ('visible_on_taskbar', models.BooleanField(default=True, verbose_name='Показувати в меню')),
                ('featured_product_limit', models.PositiveIntegerField(default=storefront.models.default_featured_limit, verbose_name='Ліміт обраних товарів')),
                ('product_count', models.PositiveIntegerField(default=0)),
                ('sub_category_count', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Категорія',
                'verbose_name_plural': 'Категорії',
                'ordering': ['order', 'name'],
                'indexes': [
                    models.Index(fields=['is_active'], name='idx_category_active'),
                    models.Index(fields=['is_showcase', 'showcase_rank'], name='idx_category_showcase'),
                    models.Index(fields=['order'], name='idx_category_order'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SubCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('slug', models.SlugField()),
                ('description', models.TextField(blank=True)),
                ('image_url', models.CharField(blank=True, max_length=500, null=True)),
                ('show_badge_on_products', models.BooleanField(default=True, verbose_name='Бейдж на товарах')),
                ('visible_on_taskbar', models.BooleanField(default=True, verbose_name='Показувати в меню')),
                ('order', models.PositiveIntegerField(default=0)),
                ('product_count', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sub_categories', to='storefront.category')),
            ],
            options={
                'verbose_name': 'Підкатегорія',
                'verbose_name_plural': 'Підкатегорії',
                'ordering': ['order', 'id'],
                'unique_together': {('category', 'slug')},
                'indexes': [
                    models.Index(fields=['category', 'order'], name='idx_subcategory_order'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('slug', models.SlugField(unique=True)),
                ('short_description', models.CharField(blank=True, max_length=300)),
                ('description', models.TextField(blank=True)),
                ('primary_image_url', models.CharField(blank=True, max_length=500)),
                ('size_variants', models.JSONField(blank=True, default=list, verbose_name='Розміри')),
                ('color_variants', models.JSONField(blank=True, default=list, verbose_name='Кольори')),
                ('price', models.PositiveIntegerField(blank=True, null=True, verbose_name='Ціна (legacy)')),
                ('compare_at_price', models.PositiveIntegerField(blank=True, null=True, verbose_name='Стара ціна (legacy)')),
                ('stock_quantity', models.PositiveIntegerField(default=0, verbose_name='Залишок (legacy)')),
                ('images', models.JSONField(blank=True, default=list, verbose_name='Зображення (legacy)')),
                ('color', models.CharField(blank=True, max_length=50, null=True, verbose_name='Колір (legacy)')),
                ('sku', models.CharField(blank=True, max_length=64, verbose_name='SKU')),
                ('is_featured', models.BooleanField(default=False)),
                ('featured_rank', models.PositiveIntegerField(blank=True, null=True, verbose_name='Позиція серед обраних')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='storefront.category')),
                ('sub_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='storefront.subcategory')),
            ],
            options={
                'verbose_name': 'Товар',
                'verbose_name_plural': 'Товари',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['category', 'is_featured', 'featured_rank'], name='idx_product_featured'),
                    models.Index(fields=['category', 'is_active'], name='idx_product_category_active'),
                    models.Index(fields=['sub_category', 'is_active'], name='idx_product_subcat_active'),
                ],
            },
        ),
    ]
