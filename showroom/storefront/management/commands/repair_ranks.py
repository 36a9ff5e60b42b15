"""
Команда для восстановления плотных позиций витрины и избранных товаров
"""
from django.core.management.base import BaseCommand, CommandError

from storefront.exceptions import CatalogError
from storefront.services.merchandising import get_service


class Command(BaseCommand):
    help = 'Перенумеровывает позиции витрины и избранных товаров в 1..N'

    def add_arguments(self, parser):
        parser.add_argument(
            '--category',
            type=int,
            help='Только избранные товары этой категории (витрина не трогается)'
        )

    def handle(self, *args, **options):
        service = get_service()
        category_id = options.get('category')

        try:
            if category_id is not None:
                reports = [service.repair_product_ranks(category_id)]
            else:
                reports = [service.repair_category_ranks()]
                for category in service.gateway.get_all('categories', order_by=['id']):
                    reports.append(service.repair_product_ranks(category['id']))
        except CatalogError as exc:
            raise CommandError(exc.message) from exc

        changed = 0
        for report in reports:
            if not report.changed:
                continue
            changed += 1
            self.stdout.write(
                self.style.WARNING(
                    f'{report.scope}: {len(report.changes)} renumbered, {len(report.cleared)} cleared'
                )
            )
        self.stdout.write(
            self.style.SUCCESS(f'Проверено списков: {len(reports)}, исправлено: {changed}')
        )
