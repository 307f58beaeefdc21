# Database Module - SQLAlchemy Core (Procedural, No ORM Classes)
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, Float, DateTime, JSON, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func
from postural_assessment import logger

metadata = MetaData()

# Table Definitions

# Analysis Records Table (history store, fingerprint -> record)
analysis_records_table = Table(
    'analysis_records',
    metadata,
    Column('seq', Integer, primary_key=True, autoincrement=True),  # Insertion order tie-break
    Column('id', String(100), unique=True, nullable=False, index=True),
    Column('fingerprint', String(64), unique=True, nullable=False, index=True),
    Column('created_at', DateTime, nullable=False, index=True),
    Column('display_name', String(255), nullable=False),
    Column('file_name', String(255), nullable=False, default=''),
    Column('display_name_search', String(255), nullable=False, default=''),  # casefolded for search
    Column('file_name_search', String(255), nullable=False, default=''),
    Column('content_type', String(100), nullable=False, default=''),
    Column('confidence_score', Float, nullable=False),
    Column('record_json', JSON, nullable=False),  # Full AnalysisRecord (pose, angles, findings, plan)
)


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL
    
    Converts postgresql:// to postgresql+psycopg:// for psycopg3 and lets
    SQLite connections be shared across request threads.
    """
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection, otherwise every checkout sees an empty database
            return create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})

    return create_engine(database_url, echo=False, pool_pre_ping=True)


# Database Initialization Functions

def init_database(engine: Engine) -> bool:
    """Create all tables if they don't exist"""
    try:
        metadata.create_all(engine)
        logger.log_db("Tables Ready", {"tables": ", ".join(metadata.tables.keys())})
        return True
    except Exception as e:
        logger.log_error("Database Initialization Failed", e)
        return False


def test_connection(engine: Engine) -> bool:
    """Test database connectivity"""
    try:
        with engine.connect() as conn:
            result = conn.execute(select(func.now()))
            logger.log_db("Connected", {"server_time": result.scalar()})
            return True
    except Exception as e:
        logger.log_error("Database Connection Failed", e)
        return False
