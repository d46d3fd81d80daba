"""Flask web layer for the product catalog service."""
