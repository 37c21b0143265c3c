"""Pydantic schemas for extracted materials and quality reports."""
