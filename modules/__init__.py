"""Domain modules, one blueprint per package."""
