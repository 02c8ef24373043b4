"""Consultas de lectura (dashboard)."""
