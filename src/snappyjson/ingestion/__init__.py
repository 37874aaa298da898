"""Progress-tracked document loading."""
