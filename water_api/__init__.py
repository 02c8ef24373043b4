"""API de ingesta y alertas de nivel de agua."""
