"""Modelos, errores y enums del dominio.

El dominio no conoce HTTP, disco ni CLI: solo el trabajo remoto de
evaluación TLS y sus estados.
"""
