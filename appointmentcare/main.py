import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from appointmentcare.core import config
from appointmentcare.core.errors import AppointmentCareError, ConflictError, PersistenceError
from appointmentcare.database import Base, check_database_connection, engine, ensure_appointment_schema
from appointmentcare.models import appointment, doctor, lookups, patient  # noqa: F401
from appointmentcare.routes import appointment_routes, lookup_routes
from appointmentcare.schemas import build_envelope

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

app = FastAPI(title=config.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.middleware('http')
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    logger.info('%s %s', request.method, request.url.path)

    try:
        response = await call_next(request)
    except Exception:
        logger.error(
            '%s %s -> failed in %.3fs',
            request.method,
            request.url.path,
            time.perf_counter() - started,
        )
        raise

    logger.info(
        '%s %s -> %s in %.3fs',
        request.method,
        request.url.path,
        response.status_code,
        time.perf_counter() - started,
    )
    return response


def _internal_error_body(exc: Exception) -> dict:
    if config.is_production():
        return build_envelope(success=False, message='Internal server error')
    return build_envelope(success=False, message='Internal server error', error=str(exc))


@app.exception_handler(AppointmentCareError)
async def handle_appointment_care_error(_request: Request, exc: AppointmentCareError):
    if isinstance(exc, PersistenceError):
        return JSONResponse(status_code=exc.status_code, content=_internal_error_body(exc))

    body = build_envelope(success=False, message=exc.message)
    if isinstance(exc, ConflictError):
        body['conflict'] = exc.conflict
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_request: Request, exc: RequestValidationError):
    logger.debug('Rejected request body: %s', exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=build_envelope(success=False, message='Invalid request body'),
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f'Route {request.method} {request.url.path} not found'
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=build_envelope(success=False, message=message),
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_internal_error_body(exc),
    )


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return build_envelope(
        message=f'Welcome to {config.APP_NAME}',
        status='Server is running',
        endpoints={
            'GET /api/appointments': 'Get all appointments',
            'GET /api/appointments/{id}': 'Get appointment by ID',
            'POST /api/appointments': 'Create new appointment',
            'PUT /api/appointments/{id}': 'Update appointment',
            'DELETE /api/appointments/{id}': 'Delete appointment',
            'GET /api/doctors': 'Get all doctors',
            'GET /api/patients': 'Get all patients',
            'GET /api/specialities': 'Get all specialities',
            'GET /api/genres': 'Get all genres',
            'GET /api/neighbourhoods': 'Get all neighbourhoods',
            'GET /api/health': 'Health check',
        },
    )


@app.get('/api/health')
def health():
    timestamp = datetime.now(timezone.utc).isoformat()
    uptime = round(time.monotonic() - STARTED_AT, 3)

    try:
        check_database_connection()
    except SQLAlchemyError:
        logger.warning('Health check could not reach the database', exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=build_envelope(
                success=False,
                status='unhealthy',
                database='unreachable',
                timestamp=timestamp,
                uptime=uptime,
            ),
        )

    return build_envelope(status='healthy', database='connected', timestamp=timestamp, uptime=uptime)


app.include_router(appointment_routes.router, prefix='/api/appointments')
app.include_router(lookup_routes.router, prefix='/api')
