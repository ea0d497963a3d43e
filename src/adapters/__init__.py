"""Adaptadores de infraestructura: HTTP (httpx), caché en disco y exportación."""
