# Routes package init
"""
RR Nagar Backend — API Routes Package
=======================================

Route Inventory:
    - products.py:    /api/products, /api/products/templates/all,
                      /api/products/{id}
    - categories.py:  /api/categories
    - auth.py:        /api/auth/login, /api/supplier/auth/login,
                      /api/admin/auth/login, /api/auth/logout, /api/auth/me
    - health.py:      GET /, GET /health

Routes stay thin: read the request, call a service, return its result.
Errors are raised by services and rendered by the handlers in main.py.
"""
