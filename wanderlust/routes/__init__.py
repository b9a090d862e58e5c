# Routes package init
"""
Wanderlust Backend - Routes Package
====================================

What:  HTTP route handlers; each module owns one resource.

Route Inventory:
    - listings.py: /listings, /listing/new, /listings/{id}[/edit]
    - reviews.py:  /listings/{id}/reviews[/{review_id}]
    - users.py:    /signup, /login, /logout
    - uploads.py:  /uploads/{key}
    - health.py:   /health

Routes stay thin: pull the inputs out of the request (via guard and
validator dependencies), call one service, then render or redirect.
"""
