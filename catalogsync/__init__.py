"""Catalog reconciliation between a storefront and an ERP platform."""
