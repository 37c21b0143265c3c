"""Extraction core, decoder adapters and reporting."""
