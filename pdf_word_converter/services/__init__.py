"""Storage and conversion services used by the web layer."""
