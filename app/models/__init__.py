"""
Lavandaria API — ORM Models
=============================

    user.py           staff accounts (master, admin, worker)
    client.py         client accounts (log in by phone)
    laundry_order.py  laundry orders and their status lifecycle

Tables are provisioned outside this service; the models only map them.
"""

from app.models.client import Client
from app.models.laundry_order import LaundryOrder, OrderStatus
from app.models.user import User

__all__ = ["Client", "LaundryOrder", "OrderStatus", "User"]
