"""
Suite de tests para la migración PostgreSQL → MongoDB de hackathons.

Los tests NO necesitan servidores reales, validan contra dobles en memoria:
- Sintaxis de código Python
- Implementación correcta de interfaces y configuración
- Lector, transformador y escritor de la migración
- Servicios SQL/NoSQL y endpoints HTTP
"""
