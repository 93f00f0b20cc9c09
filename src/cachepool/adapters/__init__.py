"""Adapters – concrete cache backends."""
