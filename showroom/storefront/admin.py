from django import forms
from django.contrib import admin, messages

from .exceptions import CatalogError
from .models import Category, Product, SubCategory
from .services.catalog import sync_stock_matrix, validate_variant_matrix
from .services.merchandising import get_service


def _run(modeladmin, request, queryset, operation, done_message):
    """Виконує операцію для кожного обраного запису; помилки каталогу показує в адмінці."""
    done = 0
    for obj in queryset:
        try:
            operation(obj)
        except CatalogError as exc:
            modeladmin.message_user(request, f'{obj}: {exc.message}', level=messages.ERROR)
        else:
            done += 1
    if done:
        modeladmin.message_user(request, done_message.format(count=done), level=messages.SUCCESS)


class CatalogAdminForm(forms.ModelForm):
    """Форма, що показує помилки каталогу як помилки валідації ще до збереження."""

    def check_catalog(self, cleaned_data):
        pass

    def clean(self):
        cleaned_data = super().clean()
        if not self.errors:
            try:
                self.check_catalog(cleaned_data)
            except CatalogError as exc:
                raise forms.ValidationError(exc.message)
        return cleaned_data


class CategoryAdminForm(CatalogAdminForm):
    class Meta:
        model = Category
        fields = '__all__'

    def clean_featured_product_limit(self):
        limit = self.cleaned_data['featured_product_limit']
        if limit < 1:
            raise forms.ValidationError('Ліміт має бути не менше 1')
        return limit


class SubCategoryAdminForm(CatalogAdminForm):
    class Meta:
        model = SubCategory
        fields = '__all__'

    def check_catalog(self, cleaned_data):
        if self.instance.pk and 'category' in self.changed_data:
            get_service().check_sub_category_move(self.instance.pk, cleaned_data['category'].pk)


class ProductAdminForm(CatalogAdminForm):
    class Meta:
        model = Product
        fields = '__all__'

    def check_catalog(self, cleaned_data):
        category = cleaned_data.get('category')
        sub_category = cleaned_data.get('sub_category')
        if category is not None:
            get_service().check_placement(category.pk, sub_category.pk if sub_category else None)
        sizes = cleaned_data.get('size_variants')
        colors = cleaned_data.get('color_variants')
        if sizes and colors:
            validate_variant_matrix(sync_stock_matrix({'size_variants': sizes, 'color_variants': colors}))


class CatalogModelAdmin(admin.ModelAdmin):
    """
    Зберігає зміни через MerchandisingService, а не через ``obj.save()``.

    Так лічильники, ранги та slug оновлюються тим самим батчем, що й запис.
    Підкласи задають ``create_document`` та ``update_document``.
    """

    def changed_fields(self, obj, form):
        data = {}
        for name in form.changed_data:
            field = obj._meta.get_field(name)
            data[field.attname] = getattr(obj, field.attname)
        return data

    def create_document(self, service, data):
        raise NotImplementedError

    def update_document(self, service, obj_id, data):
        raise NotImplementedError

    def save_model(self, request, obj, form, change):
        service = get_service()
        data = self.changed_fields(obj, form)
        if change:
            self.update_document(service, obj.pk, data)
        else:
            obj.pk = self.create_document(service, data)
        obj.refresh_from_db()


@admin.action(description='Додати на головну')
def promote_categories(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset.order_by('order'), lambda c: service.promote_category(c.pk),
         'На головну додано: {count}')


@admin.action(description='Прибрати з головної')
def demote_categories(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda c: service.demote_category(c.pk), 'З головної прибрано: {count}')


@admin.action(description='Перерахувати лічильники')
def recount_categories(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda c: service.recount_category(c.pk), 'Перераховано: {count}')


@admin.action(description='Відновити позиції вітрини та обраних')
def repair_category_ranks(modeladmin, request, queryset):
    service = get_service()
    service.repair_category_ranks()
    _run(modeladmin, request, queryset, lambda c: service.repair_product_ranks(c.pk), 'Позиції відновлено: {count}')


@admin.register(Category)
class CategoryAdmin(CatalogModelAdmin):
    form = CategoryAdminForm
    list_display = ('name', 'slug', 'order', 'is_showcase', 'showcase_rank', 'product_count', 'is_active')
    list_filter = ('is_showcase', 'is_active')
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ('is_showcase', 'showcase_rank', 'product_count', 'sub_category_count')
    actions = [promote_categories, demote_categories, recount_categories, repair_category_ranks]

    def create_document(self, service, data):
        return service.create_category(data)

    def update_document(self, service, obj_id, data):
        service.update_category(obj_id, data)

    def delete_model(self, request, obj):
        _run(self, request, [obj], lambda c: get_service().delete_category(c.pk), 'Видалено: {count}')

    def delete_queryset(self, request, queryset):
        service = get_service()
        _run(self, request, queryset, lambda c: service.delete_category(c.pk), 'Видалено: {count}')


@admin.action(description='Перерахувати лічильники')
def recount_sub_categories(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda s: service.recount_sub_category(s.pk), 'Перераховано: {count}')


@admin.register(SubCategory)
class SubCategoryAdmin(CatalogModelAdmin):
    form = SubCategoryAdminForm
    list_display = ('name', 'category', 'order', 'product_count', 'is_active')
    list_filter = ('category', 'is_active')
    readonly_fields = ('product_count',)
    actions = [recount_sub_categories]

    def create_document(self, service, data):
        return service.create_sub_category(data.pop('category_id'), data)

    def update_document(self, service, obj_id, data):
        service.update_sub_category(obj_id, data)

    def delete_model(self, request, obj):
        _run(self, request, [obj], lambda s: get_service().delete_sub_category(s.pk), 'Видалено: {count}')

    def delete_queryset(self, request, queryset):
        service = get_service()
        _run(self, request, queryset, lambda s: service.delete_sub_category(s.pk), 'Видалено: {count}')


@admin.action(description='Додати до обраних')
def promote_products(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda p: service.promote_product(p.pk, p.category_id),
         'До обраних додано: {count}')


@admin.action(description='Прибрати з обраних')
def demote_products(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda p: service.demote_product(p.pk, p.category_id),
         'З обраних прибрано: {count}')


@admin.action(description='Зберегти матрицю варіантів (legacy)')
def save_canonical_products(modeladmin, request, queryset):
    service = get_service()
    _run(modeladmin, request, queryset, lambda p: service.save_canonical(p.pk), 'Оновлено: {count}')


@admin.register(Product)
class ProductAdmin(CatalogModelAdmin):
    form = ProductAdminForm
    list_display = ('name', 'category', 'sub_category', 'is_featured', 'featured_rank', 'is_active')
    list_filter = ('category', 'is_featured', 'is_active')
    search_fields = ('name', 'slug', 'sku')
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ('is_featured', 'featured_rank')
    actions = [promote_products, demote_products, save_canonical_products]

    def create_document(self, service, data):
        return service.create_product(data)

    def update_document(self, service, obj_id, data):
        service.update_product(obj_id, data)

    def delete_model(self, request, obj):
        _run(self, request, [obj], lambda p: get_service().delete_product(p.pk), 'Видалено: {count}')

    def delete_queryset(self, request, queryset):
        service = get_service()
        _run(self, request, queryset, lambda p: service.delete_product(p.pk), 'Видалено: {count}')
