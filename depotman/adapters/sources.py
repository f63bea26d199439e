"""
Sale line source loader.

Loads the configured SaleLineSource from settings.

Usage:
    from depotman.adapters import get_sale_line_source

    source = get_sale_line_source()
    lines = source.lines_between(start, end)

Settings:
    DEPOTMAN = {
        "SALE_LINE_SOURCE": "sales.adapters.SaleItemSource",
    }

If SALE_LINE_SOURCE is not configured, get_sale_line_source() raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from depotman.conf import depotman_settings
from depotman.protocols.sales import SaleLineSource

logger = logging.getLogger(__name__)


_lock = threading.Lock()
_source: SaleLineSource | None = None


def get_sale_line_source() -> SaleLineSource:
    """
    Return the configured sale line source.

    Raises:
        ImproperlyConfigured: SALE_LINE_SOURCE missing, not importable, or
            not implementing the protocol
    """
    global _source

    if _source is None:
        with _lock:
            if _source is None:  # double-checked
                source_path = depotman_settings.SALE_LINE_SOURCE

                if not source_path:
                    raise ImproperlyConfigured(
                        "DEPOTMAN['SALE_LINE_SOURCE'] must be configured. "
                        "Example: 'sales.adapters.SaleItemSource'"
                    )

                try:
                    source_class = import_string(source_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import sale line source '{source_path}': {e}"
                    ) from e

                source = source_class()
                if not isinstance(source, SaleLineSource):
                    raise ImproperlyConfigured(
                        f"'{source_path}' does not implement SaleLineSource"
                    )
                _source = source
                logger.debug("Loaded sale line source: %s", source_path)

    return _source


def reset_sale_line_source() -> None:
    """Reset the cached source. Useful for testing."""
    global _source
    with _lock:
        _source = None
