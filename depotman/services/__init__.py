"""
Stock services — modular organization of stock operations.

    ledger          append-only movement history (source of truth)
    adjustments     manual add / remove / set, the shared write path
    sales           sale and return writes
    reconciliation  materialized stock vs ledger
    reporting       time-bucketed, currency-unified sale totals
    alerts          availability sweep and inventory summary

Import the modules directly:
    from depotman.services import adjustments
    adjustments.apply(product, 'add', 5, 'Réception', user)
"""
