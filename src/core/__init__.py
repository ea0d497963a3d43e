"""Core de tls-assess: dominio, configuración, contratos y orquestación."""
