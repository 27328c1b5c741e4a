"""
NextGen Storefront
==================

Hosting storefront for RDP and VPS plans.

This package provides:
- Plan catalog storage (Postgres via asyncpg, SQLite via aiosqlite)
- Promo code validation and order pricing
- Payment-proof uploads with storage fallback
- Media records for uploads, moderated by admins
- The four-step order flow controller
"""

__version__ = "1.0.0"
