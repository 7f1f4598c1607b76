"""Store settings: shipping charges, free-shipping threshold, COD switch.

There is one settings record per store. It is created with defaults the first
time it is read.
"""

from protean.fields import Boolean, Float, String
from protean.utils.globals import current_domain

from commerce.domain import commerce


@commerce.aggregate
class StoreSettings:
    shipping_charges = Float(default=0.0, min_value=0.0)
    free_shipping_threshold = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="INR")
    tax_rate = Float(default=0.0, min_value=0.0)
    cod_enabled = Boolean(default=True)

    def shipping_for(self, subtotal: float) -> float:
        """Flat charge, waived once a positive threshold is reached."""
        threshold = self.free_shipping_threshold or 0.0
        if threshold > 0 and subtotal >= threshold:
            return 0.0
        return self.shipping_charges or 0.0


def get_store_settings() -> StoreSettings:
    repo = current_domain.repository_for(StoreSettings)
    existing = repo._dao.query.all().items
    if existing:
        return existing[0]
    settings = StoreSettings()
    repo.add(settings)
    return settings
