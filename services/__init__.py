"""
Servicios de negocio sobre ambos almacenes.

Estructura:
    errors.py: Excepciones compartidas (mapeadas a códigos HTTP en api.py)
    postgres_service.py: Casos de uso y reportes sobre PostgreSQL
    mongodb_service.py: Migración PostgreSQL → MongoDB, casos de uso y
        reportes sobre los documentos desnormalizados

Ambos lados implementan el mismo caso de uso (inscribir participante en un
evento) y el mismo reporte analítico, cada uno preservando sus invariantes
de forma independiente.
"""
