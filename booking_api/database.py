import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from booking_api.core import config


logger = logging.getLogger(__name__)

connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_booking_schema() -> None:
    """Bring an older ``bookings`` table up to date with the current model."""
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        inspector = inspect(engine)

        if 'bookings' not in inspector.get_table_names():
            _booking_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('bookings')}
        migration_steps = [
            ('notes', 'ALTER TABLE bookings ADD COLUMN notes VARCHAR'),
            ('notify_email', 'ALTER TABLE bookings ADD COLUMN notify_email VARCHAR'),
            ('created_by', "ALTER TABLE bookings ADD COLUMN created_by VARCHAR DEFAULT 'patient'"),
            ('updated_at', 'ALTER TABLE bookings ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    logger.info('Adding missing bookings.%s column', column_name)
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_bookings_doctor_status_range '
                    'ON bookings(doctor_id, status, slot_start, slot_end)'
                )
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_bookings_doctor_active_slot '
                    'ON bookings(doctor_id, slot_start) '
                    "WHERE status IN ('pending', 'booked')"
                )
            )

        _booking_schema_checked = True
