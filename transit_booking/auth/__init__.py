"""
Accounts Module

Customer and administrator accounts with hashed credentials.

Key Components:
- schemas.py: Administrator and Customer models (tagged by ``role``)
- service.py: Registration, login and balance management
- utils.py: Password hashing helpers
"""

from .schemas import ADMIN_ROLE, CUSTOMER_ROLE, Administrator, Customer, Person, PersonBase
from .service import UserService, email_of, normalize_email

__all__ = [
    "ADMIN_ROLE",
    "CUSTOMER_ROLE",
    "Administrator",
    "Customer",
    "Person",
    "PersonBase",
    "UserService",
    "email_of",
    "normalize_email",
]
