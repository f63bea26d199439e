"""
Initial migration for Depotman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Depotman models: Product, StockMovement, ExchangeRateSetting."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Nom')),
                ('category', models.CharField(db_index=True, help_text="Détermine l'unité de stock (ex: ceramique, fer)", max_length=50, verbose_name='Catégorie')),
                ('unit', models.CharField(default='unités', max_length=20, verbose_name='Unité')),
                ('currency', models.CharField(default='HTG', max_length=3, verbose_name='Devise')),
                ('price', models.DecimalField(decimal_places=2, max_digits=14, verbose_name='Prix')),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True, verbose_name="Prix d'achat")),
                ('alert_threshold', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text="En unité d'affichage (m², barres, unités)", max_digits=12, verbose_name="Seuil d'alerte")),
                ('is_active', models.BooleanField(default=True, verbose_name='Actif')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantité')),
                ('stock_boxes', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Stock (boîtes)')),
                ('area_per_box', models.DecimalField(blank=True, decimal_places=4, max_digits=10, null=True, verbose_name='Surface par boîte (m²)')),
                ('stock_bars', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Stock (barres)')),
                ('bars_per_tonne', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, verbose_name='Barres par tonne')),
                ('stock_version', models.PositiveIntegerField(default=0, editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Produit',
                'verbose_name_plural': 'Produits',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['category', 'is_active'], name='product_category_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sequence', models.PositiveIntegerField(verbose_name='Séquence')),
                ('movement_type', models.CharField(choices=[('restock', 'Réapprovisionnement'), ('adjustment_in', 'Ajustement entrée'), ('adjustment_out', 'Ajustement sortie'), ('adjustment', 'Ajustement (inventaire)'), ('sale', 'Vente'), ('return', 'Retour'), ('loss', 'Perte')], max_length=20, verbose_name='Type')),
                ('quantity', models.DecimalField(decimal_places=3, help_text='Variation signée, ou quantité cible pour un ajustement', max_digits=12, verbose_name='Quantité')),
                ('previous_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantité précédente')),
                ('new_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Nouvelle quantité')),
                ('reason', models.CharField(blank=True, default='', help_text='Obligatoire pour les ajustements manuels', max_length=255, verbose_name='Raison')),
                ('reference', models.CharField(blank=True, db_index=True, default='', help_text='Ex: identifiant de vente', max_length=100, verbose_name='Référence')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Métadonnées')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Date')),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Utilisateur')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='depotman.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Mouvement de stock',
                'verbose_name_plural': 'Mouvements de stock',
                'ordering': ['created_at', 'sequence'],
                'indexes': [
                    models.Index(fields=['product', 'created_at'], name='movement_product_date_idx'),
                    models.Index(fields=['movement_type'], name='movement_type_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('product', 'sequence'), name='unique_movement_sequence')],
            },
        ),
        migrations.CreateModel(
            name='ExchangeRateSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('foreign_currency', models.CharField(max_length=3, verbose_name='Devise étrangère')),
                ('local_currency', models.CharField(max_length=3, verbose_name='Devise locale')),
                ('rate', models.DecimalField(decimal_places=4, help_text='Unités locales pour une unité étrangère', max_digits=12, verbose_name='Taux')),
                ('display_currency', models.CharField(max_length=3, verbose_name="Devise d'affichage")),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Mis à jour le')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Mis à jour par')),
            ],
            options={
                'verbose_name': 'Taux de change',
                'verbose_name_plural': 'Taux de change',
            },
        ),
    ]
