import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables when running without alembic (local development)
    if settings.CREAR_TABLAS:
        from app import models  # noqa: F401
        from app.database import Base, engine

        Base.metadata.create_all(bind=engine)
        logger.info("Tablas creadas/verificadas en %s", engine.url.render_as_string())
    logger.info(
        "Estrategia de escritura de gastos: %s", settings.ESTRATEGIA_ESCRITURA
    )
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Gastos por área (comprobante + formulario + contexto)
from app.routers import gastos  # noqa: E402

app.include_router(
    gastos.router,
    prefix=f"{settings.API_PREFIX}/gastos",
    tags=["Gastos"],
)

# Formularios agrupadores de gastos
from app.routers import formularios  # noqa: E402

app.include_router(
    formularios.router,
    prefix=f"{settings.API_PREFIX}/formularios",
    tags=["Formularios"],
)

# Órdenes de publicidad y sus programas
from app.routers import ordenes_publicidad  # noqa: E402

app.include_router(
    ordenes_publicidad.router,
    prefix=f"{settings.API_PREFIX}/ordenes-publicidad",
    tags=["Órdenes de Publicidad"],
)
