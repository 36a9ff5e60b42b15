"""
Команда для пересчета денормализованных счетчиков каталога
"""
from django.core.management.base import BaseCommand, CommandError

from storefront.exceptions import CatalogError
from storefront.services.merchandising import get_service


class Command(BaseCommand):
    help = 'Пересчитывает product_count и sub_category_count по активным записям'

    def add_arguments(self, parser):
        parser.add_argument('--category', type=int, help='ID категории')
        parser.add_argument('--subcategory', type=int, help='ID подкатегории')

    def handle(self, *args, **options):
        service = get_service()
        category_id = options.get('category')
        sub_category_id = options.get('subcategory')

        try:
            if category_id is None and sub_category_id is None:
                report = service.recount_all()
            else:
                report = {'categories': {}, 'subcategories': {}}
                if category_id is not None:
                    report['categories'][category_id] = service.recount_category(category_id)
                if sub_category_id is not None:
                    report['subcategories'][sub_category_id] = service.recount_sub_category(sub_category_id)
        except CatalogError as exc:
            raise CommandError(exc.message) from exc

        for collection, counts in report.items():
            for doc_id, values in counts.items():
                summary = ', '.join(f'{name}={value}' for name, value in values.items())
                self.stdout.write(f'{collection}/{doc_id}: {summary}')
        self.stdout.write(
            self.style.SUCCESS(
                f"Пересчитано категорий: {len(report['categories'])}, "
                f"подкатегорий: {len(report['subcategories'])}"
            )
        )
