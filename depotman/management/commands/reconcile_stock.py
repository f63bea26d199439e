"""
Management command to reconcile materialized stock with the ledger.

Usage:
    python manage.py reconcile_stock --dry-run
    python manage.py reconcile_stock --actor admin
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from depotman.services.reconciliation import check_all, reconcile


class Command(BaseCommand):
    """Reconcile stock command."""

    help = 'Réconcilie le stock matérialisé avec l\'historique des mouvements'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche les écarts sans les corriger'
        )
        parser.add_argument(
            '--actor',
            help='Nom d\'utilisateur enregistré sur les mouvements de correction'
        )

    def handle(self, *args, **options):
        discrepancies = check_all()

        for discrepancy in discrepancies:
            self.stdout.write(
                f'{discrepancy.product}: stock {discrepancy.materialized}, '
                f'historique {discrepancy.ledger}'
            )

        if options['dry_run'] or not discrepancies:
            self.stdout.write(f'{len(discrepancies)} écart(s) trouvé(s)')
            return

        if not options['actor']:
            raise CommandError('--actor est requis pour corriger les écarts')
        User = get_user_model()
        try:
            actor = User.objects.get(**{User.USERNAME_FIELD: options['actor']})
        except User.DoesNotExist:
            raise CommandError(f"Utilisateur inconnu: {options['actor']}")

        count = 0
        for discrepancy in discrepancies:
            if reconcile(discrepancy.product, actor=actor, repair=True) is not None:
                count += 1

        self.stdout.write(self.style.SUCCESS(f'{count} produit(s) réconcilié(s)'))
