"""ER diagram edges: explicit foreign keys, else a name-based guess (user_id -> Users)."""
from dataclasses import dataclass, asdict

from app.core.logging import get_logger
from app.schemas.project import Schema, SchemaTable

logger = get_logger(__name__)


@dataclass(frozen=True)
class Relationship:
    source_table: str
    source_field: str
    target_table: str
    target_field: str
    inferred: bool = False

    def to_dict(self) -> dict:
        d = asdict(self)
        return {
            "sourceTable": d["source_table"],
            "sourceField": d["source_field"],
            "targetTable": d["target_table"],
            "targetField": d["target_field"],
            "inferred": d["inferred"],
        }


def _primary_key_name(table: SchemaTable) -> str:
    return next((f.name for f in table.fields if f.is_primary_key), "id")


def _looks_like_fk(name: str) -> bool:
    lower = name.lower()
    return "_id" in lower or lower.endswith("id")


def _base_name(field_name: str) -> str:
    # customer_id -> customer, authorId -> author, provider_id -> provider
    lower = field_name.lower()
    if "_id" in lower:
        return lower.replace("_id", "", 1)
    return lower.removesuffix("id")


def _matches(table_name: str, base: str) -> bool:
    target = table_name.lower()
    return target == base or target == f"{base}s" or (len(base) > 2 and base in target)


def infer_relationships(schema: Schema | None) -> list[Relationship]:
    if not schema:
        return []

    edges = [
        Relationship(table.name, field.name, field.references.table, field.references.field)
        for table in schema.tables
        for field in table.fields
        if field.is_foreign_key and field.references
    ]
    if edges:
        return edges

    # Heuristic only: can produce false edges; diagram marks them as inferred
    for source in schema.tables:
        for field in source.fields:
            if field.is_primary_key or not _looks_like_fk(field.name):
                continue
            base = _base_name(field.name)
            for target in schema.tables:
                if target.name == source.name or not _matches(target.name, base):
                    continue
                target_field = _primary_key_name(target)
                logger.info("Inferred relation: %s.%s -> %s.%s", source.name, field.name, target.name, target_field)
                edges.append(Relationship(source.name, field.name, target.name, target_field, inferred=True))
                break
    return edges
