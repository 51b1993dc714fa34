"""
Servicios de negocio del motor de reservas.
Los módulos se importan directamente (services.reserva_service, etc.).
"""
