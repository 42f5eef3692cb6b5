"""Tubely media ingestion and publishing service."""
