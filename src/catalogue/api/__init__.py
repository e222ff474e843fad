"""Catalogue routers: products (with their stock endpoints) and categories."""

from catalogue.api.routes import category_router, product_router

__all__ = ["product_router", "category_router"]
