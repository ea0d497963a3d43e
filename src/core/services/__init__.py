"""Servicios del Core: validación, gate de capacidad, ciclo de vida y polling."""
