"""
View state machines for the customer, farmer and restaurant surfaces.
"""

from .customer import (
    AlreadyClaimed, BadgeCollection, CelebrationOverlay, ClaimAction, ClaimSuccess,
    CustomerRouter, FarmStory, ReceiptFlow, Scanning, Unauthenticated, claim_action,
    explorer_link,
)
from .farmer import Dashboard, FarmerLogin, FarmerRegister, FarmerRouter, RegistrationSuccess
from .restaurant import ReceiptCreated, ReceiptForm, RestaurantLogin, RestaurantRegister, RestaurantRouter

__all__ = [
    'AlreadyClaimed',
    'BadgeCollection',
    'CelebrationOverlay',
    'ClaimAction',
    'ClaimSuccess',
    'CustomerRouter',
    'FarmStory',
    'ReceiptFlow',
    'Scanning',
    'Unauthenticated',
    'claim_action',
    'explorer_link',
    'Dashboard',
    'FarmerLogin',
    'FarmerRegister',
    'FarmerRouter',
    'RegistrationSuccess',
    'ReceiptCreated',
    'ReceiptForm',
    'RestaurantLogin',
    'RestaurantRegister',
    'RestaurantRouter',
]
