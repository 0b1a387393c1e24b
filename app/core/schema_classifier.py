"""
Schema request detection: plain keyword heuristics, no model call.
False negative = conversation just continues; false positive = one extra regeneration.
Any Callable[[str], bool] can stand in for is_schema_generation_request.
"""
from typing import Callable

Classifier = Callable[[str], bool]

EXPLICIT_TRIGGER_PHRASES = (
    "generate schema",
    "generate a schema",
    "create schema",
    "create a schema",
    "generate the schema",
    "create the schema",
    "show me the schema",
    "give me the schema",
    "build the schema",
    "i want the schema",
    "i need the schema",
    "schema please",
    "please generate schema",
    "generate it now",
    "let's see the schema",
    "i'm ready for the schema",
    "generate database schema",
)

ACTION_VERBS = ("generate", "create", "build")
SUBJECT_NOUNS = ("schema", "database")
IMPERATIVE_MARKERS = ("now", "please")
UPDATE_VERBS = ("update", "change", "modify")


def is_schema_generation_request(message: str) -> bool:
    """True when the user explicitly asks for the schema in this turn."""
    lower = (message or "").lower()

    if any(phrase in lower for phrase in EXPLICIT_TRIGGER_PHRASES):
        return True

    # Command form: verb + subject + (now/please or starts with the verb)
    return (
        any(v in lower for v in ACTION_VERBS)
        and any(n in lower for n in SUBJECT_NOUNS)
        and (
            any(m in lower for m in IMPERATIVE_MARKERS)
            or lower.startswith("generate")
            or lower.startswith("create")
        )
    )


def is_schema_update_request(message: str) -> bool:
    """'update/change/modify' + 'schema': only meaningful when a schema already exists."""
    lower = (message or "").lower()
    return "schema" in lower and any(v in lower for v in UPDATE_VERBS)
