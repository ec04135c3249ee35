"""Output reporters — Rich terminal tree and JSON."""
