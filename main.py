from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS, CONFLICT_RETRY_AFTER_SECONDS
from database.conexion import Base, engine
import models  # 👈 asegura que todos los modelos estén registrados
from fastapi.middleware.cors import CORSMiddleware
from services.errors import ReservaEngineError, ConflictError
from utils.logging_utils import log_event
from utils.rate_limiter import setup_rate_limiting

try:
    Base.metadata.create_all(bind=engine)
    log_event("sistema", "sistema", "Tablas creadas (o ya existian)")
except Exception as e:
    log_event("sistema", "sistema", "Error creando tablas", f"error={e}")

app = FastAPI(title="Motor de reservas y disponibilidad")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],         # GET, POST, PUT, DELETE...
    allow_headers=["*"],
)
setup_rate_limiting(app)


@app.exception_handler(ReservaEngineError)
def manejar_error_de_reserva(request: Request, exc: ReservaEngineError):
    headers = None
    if isinstance(exc, ConflictError):
        headers = {"Retry-After": str(CONFLICT_RETRY_AFTER_SECONDS)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


from endpoints import reservas, checkin_checkout, servicios_contratados, disponibilidad, pagos
app.include_router(reservas.router)
app.include_router(checkin_checkout.router)
app.include_router(servicios_contratados.router)
app.include_router(disponibilidad.router)
app.include_router(pagos.router)


@app.get("/")
def read_root():
    return {"message": "Motor de reservas activo"}
