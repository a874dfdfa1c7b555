r"""
Script principal de migración PostgreSQL → MongoDB del sistema de hackathons.

Arquitectura con carga dinámica de migradores:
- hackmigra.py: Infraestructura de consola (menú, conexiones, resumen)
- services/mongodb_service.py: Orquestación lector → transformador → escritor
- migrators/*.py: Lógica de cada política (implementan BaseMigrator)
- config.py: Configuración centralizada de políticas

Flujo de ejecución:
1. Usuario selecciona política del menú interactivo
2. Conexión a PostgreSQL (pool) y MongoDB
3. Lectura concurrente de las doce tablas
4. Transformación en memoria (warnings por FKs colgantes)
5. Drop de colecciones obsoletas, clear-then-insert de las destino
6. Índices secundarios y resumen

Uso:
    python hackmigra.py

    # O sin menú, con la política por defecto (MIGRATION_POLICY en .env):
    python hackmigra.py --default
"""

import io
import sys
from pathlib import Path

from psycopg2 import OperationalError

# Asegurar que el directorio raíz esté en sys.path para imports dinámicos
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import config
import database
from services import mongodb_service
from services.errors import DocumentStoreUnavailableError


def select_policy():
    """
    Muestra menú interactivo para seleccionar la política de migración.

    Returns:
        str: Nombre de la política seleccionada

    Raises:
        SystemExit: Si el usuario cancela
    """
    available = list(config.MIGRATION_POLICIES.keys())

    print("\n" + "=" * 70)
    print("📚 POLÍTICAS DE MIGRACIÓN DISPONIBLES")
    print("=" * 70)

    for i, name in enumerate(available, 1):
        policy_config = config.get_policy_config(name)
        default = " (por defecto)" if name == config.DEFAULT_POLICY else ""
        print(f"\n{i}. {name}{default}")
        print(f"   └─ {policy_config.get('description', 'Sin descripción')}")
        print(f"   └─ Destino: {', '.join(policy_config['target_collections'])}")
        dropped = policy_config.get("dropped_collections", [])
        if dropped:
            print(f"   └─ Elimina: {', '.join(dropped)}")

    print("\n" + "=" * 70)

    # Loop hasta obtener selección válida
    while True:
        try:
            choice = input(
                "Seleccione el número de política (Enter = por defecto, 0 para salir): "
            ).strip()

            if choice == "":
                return config.DEFAULT_POLICY
            if choice == "0":
                print("\n👋 Migración cancelada por usuario")
                sys.exit(0)

            idx = int(choice) - 1

            if 0 <= idx < len(available):
                return available[idx]
            else:
                print("❌ Número fuera de rango. Intente nuevamente.")
        except ValueError:
            print("❌ Entrada inválida. Ingrese un número.")
        except (KeyboardInterrupt, EOFError):
            print("\n\n👋 Migración cancelada por usuario")
            sys.exit(0)


def print_stats(stats):
    """Imprime conteos por colección y warnings distintos de cero."""
    print("\n📊 Resultado:")
    for key, value in stats.items():
        if key.startswith("warnings_"):
            continue
        print(f"   • {key}: {value:,}")

    warnings = {k: v for k, v in stats.items() if k.startswith("warnings_") and v}
    if warnings:
        print("\n⚠️  Integridad referencial:")
        for key, value in warnings.items():
            print(f"   • {key.replace('warnings_', '')}: {value:,}")
    else:
        print("\n✅ Sin referencias colgantes")


def main(argv=None):
    """
    Función principal que coordina el flujo completo de migración.

    Exit Codes:
        0: Éxito
        1: Error de conexión o migración
    """
    argv = sys.argv[1:] if argv is None else argv

    print("=" * 70)
    print("🚀 MIGRACIÓN POSTGRESQL → MONGODB (HACKATHONS)")
    print("=" * 70)
    print(f"📍 PostgreSQL: {config.POSTGRES_CONFIG['dbname']}")
    print(f"📍 MongoDB: {config.MONGO_DATABASE_NAME}")

    policy = config.DEFAULT_POLICY if "--default" in argv else select_policy()

    print("\n" + "=" * 70)
    print(f"📦 Política seleccionada: {policy}")
    print("=" * 70)

    try:
        mongo_client, mongo_db = database.connect_to_mongo()
    except DocumentStoreUnavailableError:
        sys.exit(1)

    try:
        pg_pool = database.create_migration_pool()
    except OperationalError:
        mongo_client.close()
        sys.exit(1)

    try:
        result = mongodb_service.migrate_from_relational(pg_pool, mongo_db, policy=policy)
        print_stats(result["stats"])

        print("\n" + "=" * 70)
        print("✅ PROCESO COMPLETADO EXITOSAMENTE")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error durante la migración: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)

    finally:
        print("\n🔒 Cerrando conexiones...")
        pg_pool.closeall()
        mongo_client.close()
        print("✅ Conexiones cerradas correctamente")


if __name__ == "__main__":
    # Forzar UTF-8 en stdout/stderr para emojis en Windows
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8")
    main()
