"""
Portal flows driving the customer, farmer and restaurant surfaces.
"""

from .customer import CustomerPortal
from .farmer import FarmerPortal
from .restaurant import RestaurantPortal
from .wallet import FarmerCredential, normalize_private_key
from .forms import generate_batch_id

__all__ = [
    'CustomerPortal',
    'FarmerPortal',
    'RestaurantPortal',
    'FarmerCredential',
    'normalize_private_key',
    'generate_batch_id',
]
