"""
E-commerce Domain

Catalog, basket, checkout, payment reconciliation, order lifecycle
and digital delivery.
"""
