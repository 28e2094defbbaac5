# Services package init
"""
Lavandaria API — Business Logic Services
==========================================

    auth_service.py           credential checks and password changes
    user_service.py           staff account management under the can_manage matrix
    laundry_order_service.py  order listing, status lifecycle, finance summary

Services take an AsyncSession and the caller's Principal, raise the
application exceptions from app.exceptions, and never build HTTP responses.
"""
