"""
Shared fixtures: the reference schema as a static introspector and as an
in-memory SQLite database.
"""

import pytest
from sqlalchemy import create_engine, text

from dynamic_entities.catalog import ForeignKeyRegistry
from dynamic_entities.metadata import StaticIntrospector

REFERENCE_SCHEMA = {
    "tables": {
        "users": {"columns": ["id", "name"], "primary_key": "id"},
        "companies": {
            "columns": ["id", "name", "website_id", "company_website_id"],
            "primary_key": "id",
        },
        "jobs": {"columns": ["id", "title"], "primary_key": "id"},
        "websites": {"columns": ["id", "url"], "primary_key": "id"},
        "employments": {
            "columns": ["id", "user_id", "job_id", "company_id", "started_at", "ended_at"],
            "primary_key": "id",
        },
        "stats_employment_durations": {
            "columns": ["id", "employment_id", "duration"],
            "primary_key": "id",
        },
        "stats_company_employments": {
            "columns": ["id", "company_id", "num_jobs"],
            "primary_key": "id",
        },
        "tmp_load_data_table": {"columns": ["id", "junk"], "primary_key": "id"},
        "user_rollups": {
            "columns": ["id", "user_id"],
            "primary_key": "id",
            "unique": ["user_id"],
        },
        "jobs_websites": {"columns": ["job_id", "website_id"]},
        "employee_users": {
            "columns": ["id", "employee_user_id", "super_user"],
            "primary_key": "id",
            "unique": ["employee_user_id"],
        },
    }
}

# Manual foreign keys used alongside the reference schema
REFERENCE_RELATIONSHIPS = {
    "websites": {"company_website_id": "company_website"},
    "users": {"employee_user_id": "employee_user"},
}

REFERENCE_DDL = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(50))",
    "CREATE TABLE companies (id INTEGER PRIMARY KEY, name VARCHAR(50), "
    "website_id INTEGER, company_website_id INTEGER)",
    "CREATE TABLE jobs (id INTEGER PRIMARY KEY, title VARCHAR(50))",
    "CREATE TABLE websites (id INTEGER PRIMARY KEY, url VARCHAR(255))",
    "CREATE TABLE employments (id INTEGER PRIMARY KEY, user_id INTEGER, job_id INTEGER, "
    "company_id INTEGER, started_at DATE, ended_at DATE)",
    "CREATE TABLE stats_employment_durations (id INTEGER PRIMARY KEY, "
    "employment_id INTEGER, duration INTEGER)",
    "CREATE TABLE stats_company_employments (id INTEGER PRIMARY KEY, "
    "company_id INTEGER, num_jobs INTEGER)",
    "CREATE TABLE tmp_load_data_table (id INTEGER PRIMARY KEY, junk VARCHAR(50))",
    "CREATE TABLE user_rollups (id INTEGER PRIMARY KEY, user_id INTEGER)",
    "CREATE UNIQUE INDEX index_user_rollups_on_user_id ON user_rollups (user_id)",
    "CREATE TABLE jobs_websites (job_id INTEGER, website_id INTEGER)",
    "CREATE TABLE employee_users (id INTEGER PRIMARY KEY, employee_user_id INTEGER, "
    "super_user BOOLEAN)",
    "CREATE UNIQUE INDEX index_employee_users_on_employee_user_id "
    "ON employee_users (employee_user_id)",
]


@pytest.fixture(autouse=True)
def restore_id_suffix():
    """Keep the process-wide foreign key suffix from leaking between tests."""
    ForeignKeyRegistry.set_id_suffix(None)
    yield
    ForeignKeyRegistry.set_id_suffix(None)


@pytest.fixture
def reference_schema():
    """Reference schema document (fresh copy per test)."""
    import copy
    return copy.deepcopy(REFERENCE_SCHEMA)


@pytest.fixture
def introspector(reference_schema):
    """Static introspector serving the reference schema."""
    return StaticIntrospector.from_dict(reference_schema)


@pytest.fixture
def relationships():
    """Manual foreign keys for the reference schema."""
    return {table: dict(fks) for table, fks in REFERENCE_RELATIONSHIPS.items()}


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite database holding the reference schema."""
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        for statement in REFERENCE_DDL:
            conn.execute(text(statement))
    yield engine
    engine.dispose()
