"""Key, value and path search."""
