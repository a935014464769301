"""API route modules. Every router is mounted under ``/api``."""

from storefront.api.routes import (
    admin_analytics,
    admin_orders,
    admin_reviews,
    checkout,
    cloudinary,
    loyalty,
    newsletter,
    notifications,
    search,
)

ROUTERS = [
    admin_orders.router,
    admin_analytics.router,
    admin_reviews.router,
    checkout.router,
    loyalty.router,
    newsletter.router,
    notifications.router,
    search.router,
    cloudinary.router,
]

__all__ = ["ROUTERS"]
