# Services package init
"""
Wanderlust Backend - Services Layer
====================================

What:  Business logic between the routes (HTTP) and the database.
How:   Stateless service objects; each call receives the request's
       AsyncSession and returns ORM objects for the templates.

Service Inventory:
    - FileService:    listing photo validation, storage, serving, cleanup
    - ListingService: browse/detail/create/update/delete listings
    - ReviewService:  create/delete reviews under a listing
    - UserService:    signup and credential checks
"""
