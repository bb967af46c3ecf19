"""SQLite database layer for companies and their scraped jobs."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from src.core.schemas import (
    AnalysisResult,
    CompanyRecord,
    CompanyStatus,
    JobRecord,
    ScrapedJob,
)

_COMPANIES_TABLE = """
CREATE TABLE IF NOT EXISTS companies (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    name             TEXT    NOT NULL UNIQUE,
    status           TEXT    NOT NULL DEFAULT 'pending',
    career_page_url  TEXT,
    jobs_scraped_at  TEXT,
    created_at       TEXT    NOT NULL
);
"""

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    company_id      INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    title           TEXT    NOT NULL,
    location        TEXT,
    description     TEXT,
    job_url         TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'new',
    ai_analysis     TEXT,
    created_at      TEXT    NOT NULL,
    UNIQUE(company_id, job_url)
);
"""

_JOB_COLUMNS = """
    j.id, j.title, j.location, j.description, j.job_url, j.status,
    j.ai_analysis, c.name AS company_name
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_COMPANIES_TABLE)
    conn.execute(_JOBS_TABLE)
    conn.commit()
    return conn


def _company_from_row(row: sqlite3.Row) -> CompanyRecord:
    scraped_at = row["jobs_scraped_at"]
    return CompanyRecord(
        id=row["id"],
        name=row["name"],
        status=CompanyStatus(row["status"]),
        career_page_url=row["career_page_url"],
        jobs_scraped_at=datetime.fromisoformat(scraped_at) if scraped_at else None,
    )


def _job_from_row(row: sqlite3.Row) -> JobRecord:
    raw_analysis = row["ai_analysis"]
    analysis = (
        AnalysisResult.model_validate(json.loads(raw_analysis)) if raw_analysis else None
    )
    return JobRecord(
        id=row["id"],
        title=row["title"],
        location=row["location"],
        description=row["description"],
        job_url=row["job_url"],
        company_name=row["company_name"],
        status=row["status"],
        ai_analysis=analysis,
    )


def insert_company(conn: sqlite3.Connection, name: str) -> CompanyRecord:
    """Insert a new company in 'pending' status.

    Raises:
        ValueError: If the name is blank or already registered.
    """
    name = name.strip()
    if not name:
        msg = "company name must not be empty"
        raise ValueError(msg)
    try:
        cursor = conn.execute(
            "INSERT INTO companies (name, created_at) VALUES (?, ?)",
            (name, datetime.now().isoformat()),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        msg = f"Company '{name}' already exists"
        raise ValueError(msg) from e
    return CompanyRecord(id=cursor.lastrowid or 0, name=name)


def get_company(conn: sqlite3.Connection, company_id: int) -> CompanyRecord | None:
    row = conn.execute(
        "SELECT * FROM companies WHERE id = ?", (company_id,),
    ).fetchone()
    return _company_from_row(row) if row is not None else None


def list_companies(conn: sqlite3.Connection) -> list[CompanyRecord]:
    rows = conn.execute("SELECT * FROM companies ORDER BY name").fetchall()
    return [_company_from_row(r) for r in rows]


def update_company_status(
    conn: sqlite3.Connection,
    company_id: int,
    status: CompanyStatus,
    *,
    career_page_url: str | None = None,
    jobs_scraped_at: datetime | None = None,
) -> None:
    """Set a company's status, optionally recording the career page or scrape time."""
    conn.execute(
        """
        UPDATE companies
        SET status = ?,
            career_page_url = COALESCE(?, career_page_url),
            jobs_scraped_at = COALESCE(?, jobs_scraped_at)
        WHERE id = ?
        """,
        (
            status.value,
            career_page_url,
            jobs_scraped_at.isoformat() if jobs_scraped_at else None,
            company_id,
        ),
    )
    conn.commit()


def upsert_jobs(
    conn: sqlite3.Connection,
    company_id: int,
    jobs: list[ScrapedJob],
) -> int:
    """Insert scraped jobs, refreshing title/location on (company_id, job_url) conflict.

    Returns the number of rows written.
    """
    now = datetime.now().isoformat()
    conn.executemany(
        """
        INSERT INTO jobs (company_id, title, location, job_url, created_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(company_id, job_url)
        DO UPDATE SET title = excluded.title, location = excluded.location
        """,
        [(company_id, j.title, j.location, j.job_url, now) for j in jobs],
    )
    conn.commit()
    return len(jobs)


def get_jobs_for_analysis(conn: sqlite3.Connection, limit: int = 50) -> list[JobRecord]:
    """Return up to ``limit`` jobs, most recent first."""
    rows = conn.execute(
        f"""
        SELECT {_JOB_COLUMNS}
        FROM jobs j LEFT JOIN companies c ON c.id = j.company_id
        ORDER BY j.created_at DESC, j.id DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return [_job_from_row(r) for r in rows]


def list_jobs(conn: sqlite3.Connection, company_id: int | None = None) -> list[JobRecord]:
    """Return all jobs, optionally for a single company."""
    query = f"SELECT {_JOB_COLUMNS} FROM jobs j LEFT JOIN companies c ON c.id = j.company_id"
    params: tuple[int, ...] = ()
    if company_id is not None:
        query += " WHERE j.company_id = ?"
        params = (company_id,)
    rows = conn.execute(query + " ORDER BY j.id", params).fetchall()
    return [_job_from_row(r) for r in rows]


def update_job_with_analysis(
    conn: sqlite3.Connection,
    job_id: int,
    analysis: AnalysisResult,
) -> bool:
    """Attach an analysis to a job and mark it 'analyzed'.

    Last write wins. Returns False if no job has that id.
    """
    cursor = conn.execute(
        "UPDATE jobs SET ai_analysis = ?, status = 'analyzed' WHERE id = ?",
        (analysis.model_dump_json(), job_id),
    )
    conn.commit()
    return cursor.rowcount > 0
