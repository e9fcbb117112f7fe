# models/__init__.py

from .users import User
from .car import Car
from .booking import Booking

__all__ = [
    "User",
    "Car",
    "Booking"
]
