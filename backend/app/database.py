import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import settings


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- PROFILES (mirror of auth provider users)
-- ============================================================
CREATE TABLE IF NOT EXISTS profiles (
    id         TEXT PRIMARY KEY,
    email      TEXT,
    full_name  TEXT,
    user_type  TEXT NOT NULL CHECK(user_type IN ('course','professional')),
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

-- ============================================================
-- JOBS
-- ============================================================
CREATE TABLE IF NOT EXISTS jobs (
    id                      TEXT PRIMARY KEY,
    course_id               TEXT NOT NULL REFERENCES profiles(id),
    title                   TEXT NOT NULL,
    description             TEXT NOT NULL,
    job_type                TEXT NOT NULL
                            CHECK(job_type IN ('greenskeeping','equipment_operation','irrigation',
                                               'landscaping','general_maintenance')),
    latitude                REAL NOT NULL,
    longitude               REAL NOT NULL,
    address                 TEXT NOT NULL,
    start_date              TEXT NOT NULL,
    end_date                TEXT,
    hourly_rate             REAL NOT NULL CHECK(hourly_rate > 0),
    required_certifications TEXT NOT NULL DEFAULT '[]',
    required_experience     TEXT CHECK(required_experience IN ('entry','intermediate','expert')),
    urgency_level           TEXT NOT NULL DEFAULT 'normal'
                            CHECK(urgency_level IN ('normal','high','emergency')),
    status                  TEXT NOT NULL DEFAULT 'open'
                            CHECK(status IN ('open','in_progress','completed','cancelled')),
    completion_notes        TEXT,
    created_at              TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at              TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    started_at              TEXT,
    completed_at            TEXT,
    cancelled_at            TEXT
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_course ON jobs(course_id);
CREATE INDEX IF NOT EXISTS idx_jobs_start_date ON jobs(start_date);

-- ============================================================
-- APPLICATIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS applications (
    id              TEXT PRIMARY KEY,
    job_id          TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    professional_id TEXT NOT NULL REFERENCES profiles(id),
    message         TEXT,
    proposed_rate   REAL CHECK(proposed_rate > 0),
    status          TEXT NOT NULL DEFAULT 'pending'
                    CHECK(status IN ('pending','accepted_by_course',
                                     'accepted_by_professional','rejected')),
    applied_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    UNIQUE (job_id, professional_id)
);

CREATE INDEX IF NOT EXISTS idx_applications_job ON applications(job_id);
CREATE INDEX IF NOT EXISTS idx_applications_professional ON applications(professional_id);
CREATE INDEX IF NOT EXISTS idx_applications_status ON applications(status);

-- ============================================================
-- JOB UPDATES (append-only progress log)
-- ============================================================
CREATE TABLE IF NOT EXISTS job_updates (
    id              TEXT PRIMARY KEY,
    job_id          TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    professional_id TEXT NOT NULL REFERENCES profiles(id),
    update_type     TEXT NOT NULL CHECK(update_type IN ('progress','milestone','photo')),
    milestone       TEXT CHECK(milestone IN ('started','in_progress','awaiting_review','completed')),
    content         TEXT,
    photos          TEXT NOT NULL DEFAULT '[]',
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_job_updates_job ON job_updates(job_id, created_at);
-- A job can only be started once
CREATE UNIQUE INDEX IF NOT EXISTS idx_job_updates_started ON job_updates(job_id) WHERE milestone = 'started';

-- ============================================================
-- CONVERSATIONS & MESSAGES
-- ============================================================
CREATE TABLE IF NOT EXISTS job_conversations (
    id              TEXT PRIMARY KEY,
    job_id          TEXT NOT NULL UNIQUE REFERENCES jobs(id) ON DELETE CASCADE,
    course_id       TEXT NOT NULL,
    professional_id TEXT NOT NULL,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE TABLE IF NOT EXISTS messages (
    id              TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL REFERENCES job_conversations(id) ON DELETE CASCADE,
    job_id          TEXT,
    sender_id       TEXT NOT NULL,
    content         TEXT NOT NULL,
    message_type    TEXT NOT NULL DEFAULT 'text' CHECK(message_type IN ('text','system')),
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id, created_at);

-- ============================================================
-- NOTIFICATIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS notifications (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    type       TEXT NOT NULL,
    title      TEXT NOT NULL,
    message    TEXT NOT NULL,
    metadata   TEXT NOT NULL DEFAULT '{}',
    read_at    TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, created_at);
"""


MIGRATIONS = [
    # v0.2: lifecycle timestamps on jobs
    "ALTER TABLE jobs ADD COLUMN started_at TEXT",
    "ALTER TABLE jobs ADD COLUMN completed_at TEXT",
    "ALTER TABLE jobs ADD COLUMN cancelled_at TEXT",
]


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    # Run migrations idempotently (ALTER TABLE fails if the column exists)
    for migration in MIGRATIONS:
        try:
            conn.execute(migration)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # column already exists
    conn.close()
