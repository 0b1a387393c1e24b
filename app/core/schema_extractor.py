"""
Schema extraction: model ka free text -> Schema. Never raises.

Fallback chain, first Ok wins:
  1. JSON object in the reply ({tables, type, code})
  2. Raw CREATE TABLE statements anywhere in the reply
  3. Static Users schema (always succeeds)
Each stage returns Ok/Err; only the orchestrator decides what runs next.
"""
import json
import re
from dataclasses import dataclass
from typing import Callable, Union

from pydantic import ValidationError

from app.core.logging import get_logger
from app.core.sql_parser import parse_create_table_statements
from app.schemas.project import Schema, SchemaField, SchemaTable

logger = get_logger(__name__)

CREATE_TABLE_BLOCK_RE = re.compile(r"CREATE\s+TABLE.*?;", re.IGNORECASE | re.DOTALL)

FALLBACK_SQL = (
    "CREATE TABLE Users (\n"
    "  id INT PRIMARY KEY,\n"
    "  name VARCHAR(255),\n"
    "  email VARCHAR(255)\n"
    ");"
)


@dataclass(frozen=True)
class Ok:
    schema: Schema
    strategy: str


@dataclass(frozen=True)
class Err:
    reason: str


ExtractionResult = Union[Ok, Err]


def normalize_code(code: str) -> str:
    """Model kabhi kabhi real newline ki jagah literal '\\n' likhta hai."""
    return (code or "").replace("\\n", "\n")


def fallback_schema() -> Schema:
    """Obviously-generic schema so the UI never gets an empty one after a request."""
    return Schema(
        tables=[
            SchemaTable(
                name="Users",
                fields=[
                    SchemaField(name="id", type="int", is_primary_key=True),
                    SchemaField(name="name", type="varchar"),
                    SchemaField(name="email", type="varchar"),
                ],
            )
        ],
        type="sql",
        code=FALLBACK_SQL,
    )


def _find_json_object(text: str) -> dict | None:
    """First decodable {...} with a "tables" key (fenced or raw); stray dicts in prose are skipped."""
    decoder = json.JSONDecoder()
    for m in re.finditer(r"\{", text):
        try:
            obj, _ = decoder.raw_decode(text, m.start())
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict) and "tables" in obj:
            return obj
    return None


def extract_json_schema(text: str) -> ExtractionResult:
    data = _find_json_object(text or "")
    if data is None:
        return Err("no JSON object in response")

    tables, schema_type, code = data.get("tables"), data.get("type"), data.get("code")
    if not tables or not isinstance(tables, list):
        return Err("JSON missing tables")
    if not isinstance(schema_type, str) or schema_type.lower() not in ("sql", "nosql"):
        return Err(f"JSON has invalid type {schema_type!r}")
    if not code or not isinstance(code, str):
        return Err("JSON missing code")

    try:
        schema = Schema.model_validate({**data, "type": schema_type.lower(), "code": normalize_code(code)})
    except ValidationError as e:
        return Err(f"JSON schema failed validation: {e.error_count()} error(s)")

    if schema.type == "sql":
        _check_code_matches_tables(schema)
    return Ok(schema, "json")


def _check_code_matches_tables(schema: Schema) -> None:
    """Log only: the structured tables are returned as the model sent them."""
    parsed = {t.name.lower() for t in parse_create_table_statements(schema.code).tables}
    declared = {t.name.lower() for t in schema.tables}
    if parsed and parsed != declared:
        logger.warning(
            "Schema code/tables mismatch: code has %s, tables has %s",
            sorted(parsed), sorted(declared),
        )


def extract_sql_schema(text: str) -> ExtractionResult:
    # Truncated JSON leaves escaped DDL behind; unescape before scanning
    unescaped = normalize_code(text or "").replace('\\"', '"')
    statements = CREATE_TABLE_BLOCK_RE.findall(unescaped)
    if not statements:
        return Err("no CREATE TABLE statements in response")
    schema = parse_create_table_statements("\n\n".join(statements))
    if not schema.tables:
        return Err("CREATE TABLE text matched but no table parsed")
    return Ok(schema, "sql")


STRATEGIES: tuple[Callable[[str], ExtractionResult], ...] = (extract_json_schema, extract_sql_schema)


def extract_schema(text: str) -> Schema:
    """Best available Schema from one completion; falls back to the static Users schema."""
    for strategy in STRATEGIES:
        result = strategy(text)
        if isinstance(result, Ok):
            logger.info("Schema extracted via %s (%d tables)", result.strategy, len(result.schema.tables))
            return result.schema
        logger.info("Schema extraction step failed: %s", result.reason)

    logger.warning("Failed to extract schema from AI response, using fallback schema")
    return fallback_schema()
