"""SnappyJSON - lazy navigation, search and editing of large JSON documents."""

__version__ = "0.1.0"
