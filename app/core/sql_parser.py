"""
CREATE TABLE scanner: best-effort regex parsing, NOT a SQL grammar.
Input is model-written DDL, so anything that doesn't look like
CREATE TABLE ... ; is skipped instead of raising.
Swap in a real tokenizer behind parse_create_table_statements() if ever needed.
"""
import re

from app.schemas.project import FieldReference, Schema, SchemaField, SchemaTable

TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([^\s(]+)\s*\(\s*(.*?)(?:\);|;)",
    re.IGNORECASE | re.DOTALL,
)
PRIMARY_KEY_RE = re.compile(r"PRIMARY\s+KEY\s*\(([^)]*)\)", re.IGNORECASE)
FOREIGN_KEY_RE = re.compile(
    r"FOREIGN\s+KEY\s*\(\s*([^\s,)]+)\s*\)\s*REFERENCES\s+([^\s(]+)\s*\(\s*([^\s,)]+)\s*\)",
    re.IGNORECASE,
)
INLINE_PRIMARY_KEY_RE = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
INLINE_REFERENCES_RE = re.compile(
    r"\bREFERENCES\s+([^\s(]+)\s*\(\s*([^\s,)]+)\s*\)", re.IGNORECASE
)
# Column type ends where the key constraints start
TYPE_CUT_RE = re.compile(r"\s*\b(?:PRIMARY\s+KEY|FOREIGN\s+KEY|REFERENCES)\b.*$", re.IGNORECASE | re.DOTALL)
QUOTES_RE = re.compile(r"[\"'`]")

# Segments starting with these words are table constraints, not columns
NON_COLUMN_WORDS = {"primary", "foreign", "constraint", "unique", "key", "index", "check"}


def _clean_identifier(name: str) -> str:
    return QUOTES_RE.sub("", name).strip()


def _split_top_level(body: str) -> list[str]:
    """Split on commas outside parentheses; stop at an unbalanced ')' (table options follow it)."""
    parts, current, depth = [], [], 0
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _parse_table(name: str, body: str) -> SchemaTable:
    primary_keys: set[str] = set()
    for m in PRIMARY_KEY_RE.finditer(body):
        for col in m.group(1).split(","):
            if _clean_identifier(col):
                primary_keys.add(_clean_identifier(col))

    foreign_keys: dict[str, FieldReference] = {}
    for m in FOREIGN_KEY_RE.finditer(body):
        foreign_keys.setdefault(
            _clean_identifier(m.group(1)),
            FieldReference(table=_clean_identifier(m.group(2)), field=_clean_identifier(m.group(3))),
        )

    columns: list[tuple[str, str]] = []
    for segment in _split_top_level(body):
        words = segment.split(None, 1)
        field_name = _clean_identifier(words[0])
        if not field_name or field_name.lower() in NON_COLUMN_WORDS:
            continue
        rest = words[1] if len(words) > 1 else ""

        if INLINE_PRIMARY_KEY_RE.search(rest):
            primary_keys.add(field_name)
        ref = INLINE_REFERENCES_RE.search(rest)
        if ref:
            foreign_keys.setdefault(
                field_name,
                FieldReference(table=_clean_identifier(ref.group(1)), field=_clean_identifier(ref.group(2))),
            )
        columns.append((field_name, TYPE_CUT_RE.sub("", rest).strip()))

    fields: list[SchemaField] = []
    seen: set[str] = set()
    for field_name, field_type in columns:
        if field_name in seen:
            continue
        seen.add(field_name)
        reference = foreign_keys.get(field_name)
        fields.append(
            SchemaField(
                name=field_name,
                type=field_type,
                is_primary_key=field_name in primary_keys,
                is_foreign_key=reference is not None,
                references=reference,
            )
        )
    return SchemaTable(name=name, fields=fields)


def parse_create_table_statements(sql_code: str) -> Schema:
    """All CREATE TABLE blocks in sql_code -> Schema. code is returned untouched."""
    tables: list[SchemaTable] = []
    seen: set[str] = set()
    for m in TABLE_RE.finditer(sql_code or ""):
        name = _clean_identifier(m.group(1))
        # Same rule as columns: first declaration wins
        if name in seen:
            continue
        seen.add(name)
        tables.append(_parse_table(name, m.group(2)))
    return Schema(tables=tables, type="sql", code=sql_code or "")
