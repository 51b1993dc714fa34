"""
Serialización de los caminos de commit.

Dos niveles de bloqueo:
- Bloqueos en proceso por clave (habitación, cupo de servicio) con espera acotada.
- Bloqueos de fila en la base (SELECT ... FOR UPDATE) cuando el dialecto los soporta;
  en PostgreSQL la espera se acota con lock_timeout.

Las claves se adquieren siempre en orden ascendente para evitar deadlocks.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, List

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from config import LOCK_TIMEOUT_SECONDS
from services.errors import ConflictError

# SQLSTATE de PostgreSQL: lock_not_available, serialization_failure, deadlock_detected
_PG_CODIGOS_CONTENCION = {"55P03", "40001", "40P01"}


def clave_habitacion(habitacion_id: int) -> tuple:
    return ("habitacion", int(habitacion_id))


def clave_cupo(servicio_id: int, fecha) -> tuple:
    return ("cupo", int(servicio_id), fecha.isoformat())


def clave_reserva(reserva_id: int) -> tuple:
    return ("reserva", int(reserva_id))


def clave_contrato(contrato_id: int) -> tuple:
    return ("contrato", int(contrato_id))


def clave_pago(pago_id: int) -> tuple:
    return ("pago", int(pago_id))


class RegistroBloqueos:
    """Locks en proceso indexados por clave."""

    def __init__(self):
        self._guardia = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def _lock_para(self, clave: Hashable) -> threading.Lock:
        with self._guardia:
            lock = self._locks.get(clave)
            if lock is None:
                lock = threading.Lock()
                self._locks[clave] = lock
            return lock

    @contextmanager
    def retener(self, claves: Iterable[Hashable], timeout: float = LOCK_TIMEOUT_SECONDS):
        adquiridos: List[threading.Lock] = []
        try:
            for clave in sorted(set(claves)):
                lock = self._lock_para(clave)
                if not lock.acquire(timeout=timeout):
                    raise ConflictError(
                        f"Recurso {clave} ocupado por otra operación, reintente",
                        clave=list(clave) if isinstance(clave, tuple) else clave,
                        timeout=timeout,
                    )
                adquiridos.append(lock)
            yield
        finally:
            for lock in reversed(adquiridos):
                lock.release()


registro_bloqueos = RegistroBloqueos()


def es_error_de_bloqueo(exc: OperationalError) -> bool:
    original = getattr(exc, "orig", None)
    codigo = getattr(original, "pgcode", None) or getattr(original, "sqlstate", None)
    if codigo in _PG_CODIGOS_CONTENCION:
        return True
    # SQLite: "database is locked" / "database table is locked"
    return "locked" in str(original or exc).lower()


def _acotar_espera_en_base(db: Session, timeout: float) -> None:
    if db.get_bind().dialect.name == "postgresql":
        milisegundos = max(int(timeout * 1000), 1)
        db.execute(text(f"SET LOCAL lock_timeout = '{milisegundos}ms'"))


@contextmanager
def transaccion_serializada(db: Session, claves: Iterable[Hashable] = (), timeout: float = None):
    """
    Ejecuta el bloque check-then-write bajo los bloqueos de las claves dadas y
    hace commit al salir. Cualquier error hace rollback; la contención de
    bloqueos se traduce a ConflictError.
    """
    timeout = LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    with registro_bloqueos.retener(claves, timeout):
        # Lo leído antes de tomar los bloqueos puede estar desactualizado
        db.expire_all()
        try:
            _acotar_espera_en_base(db, timeout)
            yield db
            db.commit()
        except OperationalError as exc:
            db.rollback()
            if es_error_de_bloqueo(exc):
                raise ConflictError(
                    "Timeout esperando bloqueo en la base de datos, reintente",
                    timeout=timeout,
                ) from exc
            raise
        except Exception:
            db.rollback()
            raise


def bloquear_filas(db: Session, modelo, ids: Iterable[int]) -> list:
    """SELECT ... FOR UPDATE de las filas en orden de id ascendente."""
    ids_ordenados = sorted(set(ids))
    if not ids_ordenados:
        return []
    return (
        db.query(modelo)
        .filter(modelo.id.in_(ids_ordenados))
        .order_by(modelo.id.asc())
        .with_for_update()
        .all()
    )
