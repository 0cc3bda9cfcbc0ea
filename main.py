import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from payments.router import router as payments_router, itn_router
from core.config import settings

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PayFast ITN API")

# Обработчик ошибок валидации
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Логируем ошибки валидации запросов"""
    logger.error(f"Ошибка валидации запроса {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )

if settings.ALLOWED_ORIGINS:
    ALLOWED_ORIGINS = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
else:
    # Для локальной разработки
    ALLOWED_ORIGINS = [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:3000"
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Роутеры
app.include_router(itn_router)
app.include_router(payments_router)

@app.get("/")
def root():
    return {"status": "ok", "version": "1.0.0", "message": "PayFast ITN API"}

@app.get("/health")
def health_check():
    """Health check endpoint для мониторинга"""
    return {"status": "healthy"}

@app.get("/api/health")
def api_health_check():
    """Health check endpoint для мониторинга (под /api)"""
    return {"status": "healthy"}
