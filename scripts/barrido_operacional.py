"""
Barrido operacional para ejecutar desde cron:
- Finaliza estadías en check-in cuya fecha de fin ya pasó.
- Completa servicios confirmados de fechas anteriores a hoy.

Uso:
    python scripts/barrido_operacional.py
    python scripts/barrido_operacional.py --solo estadias
    python scripts/barrido_operacional.py --hoy 2026-03-02
"""
import argparse
import os
import sys
from datetime import date

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.conexion import SessionLocal  # noqa: E402
import models  # noqa: E402,F401
from services.mantenimiento_service import MantenimientoService  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Barrido operacional del motor de reservas")
    parser.add_argument(
        "--solo",
        choices=["estadias", "servicios"],
        default=None,
        help="Ejecutar solo uno de los barridos",
    )
    parser.add_argument(
        "--hoy",
        type=date.fromisoformat,
        default=None,
        help="Fecha operativa (YYYY-MM-DD) para el barrido de servicios; por defecto hoy en la zona del hotel",
    )
    parser.add_argument("--usuario", default="sistema", help="Usuario registrado en la auditoría")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    session = SessionLocal()
    try:
        if args.solo in (None, "estadias"):
            resultado = MantenimientoService.finalizar_estadias_vencidas(session, usuario=args.usuario)
            print(f"Estadías finalizadas: {resultado['finalizadas']}")
            if resultado["fallidas"]:
                print(f"Estadías con error: {resultado['fallidas']}")
            if resultado["confirmadas_vencidas"]:
                print(f"Reservas confirmadas sin check-in vencidas: {resultado['confirmadas_vencidas']}")

        if args.solo in (None, "servicios"):
            resultado = MantenimientoService.completar_servicios_vencidos(
                session, hoy=args.hoy, usuario=args.usuario
            )
            print(f"Servicios completados: {resultado['completados']}")
            if resultado["fallidos"]:
                print(f"Servicios con error: {resultado['fallidos']}")
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
