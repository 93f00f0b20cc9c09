"""Application layer – cache pools, tagging and the simple façade."""
