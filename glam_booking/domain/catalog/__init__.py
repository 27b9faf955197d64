"""Catalog domain - Bookable services (read-only for the booking core)"""
