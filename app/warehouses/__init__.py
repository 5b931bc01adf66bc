"""
Warehouses application.

Partner listings that customers rent or buy. Listing CRUD and search are
handled elsewhere; this app owns the Warehouse row the booking flow locks,
reserves and releases.

Usage:
    from warehouses.models import ListingType, Warehouse, WarehouseStatus
"""
