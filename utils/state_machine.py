"""
Tablas de transición para los ciclos de vida de reservas, check-in/check-out,
servicios contratados y pagos.
"""
from enum import Enum
from typing import Dict, Iterable, Tuple

from services.errors import InvalidTransitionError


class MaquinaEstados:
    """(estado actual, acción) -> estado siguiente. Todo lo demás es inválido."""

    def __init__(self, entidad: str, transiciones: Dict[Tuple[Enum, str], Enum]):
        self.entidad = entidad
        self._transiciones = dict(transiciones)

    def siguiente(self, estado_actual: Enum, accion: str) -> Enum:
        try:
            return self._transiciones[(estado_actual, accion)]
        except KeyError:
            raise InvalidTransitionError(self.entidad, estado_actual, accion) from None

    def acciones(self, estado_actual: Enum) -> Iterable[str]:
        return [accion for (estado, accion) in self._transiciones if estado == estado_actual]

    def aplicar(self, entidad_obj, accion: str, campo: str = "estado") -> Tuple[Enum, Enum]:
        """Transiciona entidad_obj.<campo>; devuelve (anterior, nuevo)."""
        anterior = getattr(entidad_obj, campo)
        nuevo = self.siguiente(anterior, accion)
        setattr(entidad_obj, campo, nuevo)
        return anterior, nuevo
