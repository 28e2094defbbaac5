# Routes package init
"""
Lavandaria API — Routes Package
=================================

Route Inventory:
    - health.py:          GET    /healthz, /readyz
    - auth.py:            POST   /api/auth/login/user, /api/auth/login/client
                          GET    /api/auth/check
                          POST   /api/auth/logout, /api/auth/change-password
    - users.py:           GET    /api/users, /api/users/{id}
                          POST   /api/users
                          PUT    /api/users/{id}
                          DELETE /api/users/{id}
    - clients.py:         GET    /api/clients, /api/clients/me, /api/clients/{id}
                          POST   /api/clients
                          PUT    /api/clients/{id}
                          DELETE /api/clients/{id}
    - laundry_orders.py:  GET    /api/laundry-orders, /api/laundry-orders/{id}
                          POST   /api/laundry-orders
                          PUT    /api/laundry-orders/{id}
                          PATCH  /api/laundry-orders/{id}/status
                          DELETE /api/laundry-orders/{id}
                          GET    /api/laundry-orders/summary/finance

Routes stay thin: guard with a role dependency, normalize pagination,
read JSON bodies through app.request_body after the guard,
delegate to a service, render through app.envelope.
"""
