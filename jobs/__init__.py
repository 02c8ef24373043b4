"""Jobs operativos que corren fuera del proceso de la API."""
