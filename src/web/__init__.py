"""Página web de un solo botón (FastAPI)."""
