import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
# Load .env.local first (for local development), then .env (fallback)
load_dotenv(".env.local", override=True)  # Local development overrides
load_dotenv()  # Load .env if exists (won't override existing vars)
# General config in a central place


# CORS configuration
# Comma-separated list of allowed origins; if empty, allow all (not recommended with credentials)
RAW_ALLOWED_ORIGINS = os.getenv("ALLOWED_CORS_ORIGINS", "")
ALLOWED_CORS_ORIGINS = [o.strip() for o in RAW_ALLOWED_ORIGINS.split(",") if o.strip()]


# Database

# Metadata database (users, maps, layers, analysis nodes)
DATABASE_URL = os.getenv("DATABASE_URL")

# Database holding the users' data tables. CDB_QueryTables runs here.
# Falls back to the metadata database for single-database deployments.
USER_DATABASE_URL = os.getenv("USER_DATABASE_URL") or DATABASE_URL


# Security

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))


# ----------------------------------------------------------------------------
# Table dependency tracking
# ----------------------------------------------------------------------------

# Database function returning the tables a query reads from, as "{a,b}".
QUERY_TABLES_FUNCTION_ENV = "QUERY_TABLES_FUNCTION"
DEFAULT_QUERY_TABLES_FUNCTION = "CDB_QueryTables"

# Upper bound on analysis nodes visited per layer resolution.
ANALYSIS_GRAPH_MAX_NODES_ENV = "ANALYSIS_GRAPH_MAX_NODES"
DEFAULT_ANALYSIS_GRAPH_MAX_NODES = 500

LAYER_TEMPLATES_DIR_ENV = "LAYER_TEMPLATES_DIR"
DEFAULT_LAYER_TEMPLATES_DIR = Path("templates/layers")


def get_query_tables_function() -> str:
    """Return the name of the SQL function used to extract query tables.

    Exposed as a function so tests can override the environment at runtime
    and re-query the value without needing to reload this module.
    """
    value = os.getenv(QUERY_TABLES_FUNCTION_ENV, "").strip()
    return value or DEFAULT_QUERY_TABLES_FUNCTION


def get_analysis_graph_max_nodes() -> int:
    """Return the node ceiling for analysis graph walks."""
    raw = os.getenv(ANALYSIS_GRAPH_MAX_NODES_ENV, "").strip()
    if not raw:
        return DEFAULT_ANALYSIS_GRAPH_MAX_NODES
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_ANALYSIS_GRAPH_MAX_NODES
    return value if value > 0 else DEFAULT_ANALYSIS_GRAPH_MAX_NODES


def get_layer_templates_dir() -> Path:
    """Return the directory holding infowindow/tooltip templates."""

    custom = os.getenv(LAYER_TEMPLATES_DIR_ENV)
    if custom:
        return Path(custom)
    return DEFAULT_LAYER_TEMPLATES_DIR
