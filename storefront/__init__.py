"""Storefront backend: catalog, baskets, orders, payments and digital delivery."""

__version__ = "0.1.0"
