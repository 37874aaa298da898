"""JSON document model: pointers, projection, storage and mutation."""
