"""
homebase: data-access layer of a household logistics app.

Households, members, wishlists, shopping lists and trips, served by either
a Supabase backend or a local persisted store behind the same repository
interfaces.
"""

__version__ = "0.1.0"
