from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from appointmentcare.core import config


def enable_sqlite_foreign_keys(target: Engine) -> None:
    if target.dialect.name != 'sqlite':
        return

    @event.listens_for(target, 'connect')
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def build_engine(database_url: str, **kwargs) -> Engine:
    if database_url.startswith('sqlite'):
        kwargs.setdefault('connect_args', {'check_same_thread': False})

    built = create_engine(database_url, echo=config.DATABASE_ECHO, **kwargs)
    enable_sqlite_foreign_keys(built)
    return built


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema(target: Engine | None = None) -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    bind = target or engine

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(bind)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('scheduled_date', 'ALTER TABLE appointments ADD COLUMN scheduled_date TIMESTAMP'),
            ('sms_sent', 'ALTER TABLE appointments ADD COLUMN sms_sent BOOLEAN'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_doctor_scheduled '
                    'ON appointments(doctor_id, scheduled_date)'
                )
            )

        _appointment_schema_checked = True


def check_database_connection(target: Engine | None = None) -> None:
    with (target or engine).connect() as connection:
        connection.execute(text('SELECT 1'))
