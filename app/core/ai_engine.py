"""
KeyMap AI Engine: Gemini calls for chat replies and schema generation.
- GeminiTextService.complete(history, instruction) = the only network call
- Any Gemini failure (key missing, quota, timeout, blocked reply) -> ServiceError
- generate_schema(): ServiceError -> static fallback schema
- get_chat_response(): ServiceError -> fixed apology text
"""
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from app.core.config import get_gemini_api_key, get_gemini_model, get_gemini_timeout
from app.core.logging import get_logger
from app.core.schema_classifier import is_schema_generation_request
from app.core.schema_extractor import extract_schema, fallback_schema
from app.schemas.project import Message, Schema

logger = get_logger(__name__)

# Conversation length at which the assistant starts nudging towards generation
LONG_CONVERSATION_MESSAGES = 6

CHAT_ERROR_REPLY = "I'm sorry, I encountered an error processing your request. Could you please try again?"
SCHEMA_SHOWN_REPLY = "Your schema is shown above the chat. Let me know if you want any changes."

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_ONLY_HIGH,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
}


class ServiceError(Exception):
    """Gemini unavailable, timed out, over quota, or returned nothing usable."""


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float
    max_output_tokens: int
    # True: instruction goes in as the last user turn; False: as system instruction
    instruction_as_turn: bool = False


SCHEMA_OPTIONS = GenerationOptions(temperature=0.2, max_output_tokens=8192, instruction_as_turn=True)
CHAT_OPTIONS = GenerationOptions(temperature=0.7, max_output_tokens=2048)


class TextService(Protocol):
    def complete(self, history: list[Message], instruction: str, options: GenerationOptions = CHAT_OPTIONS) -> str:
        ...


def to_gemini_contents(messages: Iterable[Message]) -> list[dict]:
    return [
        {"role": "user" if m.is_user else "model", "parts": [m.content]}
        for m in messages
        if m.content
    ]


class GeminiTextService:
    def __init__(self, api_key: str | None = None, model_name: str | None = None, timeout: float | None = None):
        self.api_key = api_key if api_key is not None else get_gemini_api_key()
        self.model_name = model_name or get_gemini_model()
        self.timeout = timeout if timeout is not None else get_gemini_timeout()

    def complete(self, history: list[Message], instruction: str, options: GenerationOptions = CHAT_OPTIONS) -> str:
        if not self.api_key:
            raise ServiceError("GEMINI_API_KEY missing in environment")

        contents = to_gemini_contents(history)
        if options.instruction_as_turn:
            contents.append({"role": "user", "parts": [instruction]})
        if not contents:
            raise ServiceError("Nothing to send: conversation is empty")

        genai.configure(api_key=self.api_key)
        if options.instruction_as_turn:
            model = genai.GenerativeModel(self.model_name)
        else:
            model = genai.GenerativeModel(self.model_name, system_instruction=instruction)

        try:
            response = model.generate_content(
                contents,
                generation_config=genai.GenerationConfig(
                    temperature=options.temperature,
                    max_output_tokens=options.max_output_tokens,
                ),
                safety_settings=SAFETY_SETTINGS,
                request_options={"timeout": self.timeout},
            )
            # .text raises ValueError when the candidate was blocked / has no parts
            text = response.text
        except (google_exceptions.GoogleAPIError, ValueError, TimeoutError) as e:
            raise ServiceError(str(e)) from e

        if not text or not text.strip():
            raise ServiceError("AI response empty")
        return text


SCHEMA_PROMPT = """
Using the conversation so far, design the database schema the user needs.
Pick SQL or NoSQL, whichever fits the requirements.

Reply with ONE JSON object first, in exactly this shape:

{
  "tables": [
    {
      "name": "TableName",
      "fields": [
        {
          "name": "fieldName",
          "type": "dataType",
          "isPrimaryKey": true,
          "isForeignKey": false,
          "references": {"table": "OtherTable", "field": "otherField"}
        }
      ]
    }
  ],
  "type": "sql",
  "code": "CREATE TABLE statements, or the NoSQL validation schema"
}

Rules:
1. "type" is "sql" or "nosql".
2. SQL: "code" holds CREATE TABLE statements with PRIMARY KEY and FOREIGN KEY constraints.
3. NoSQL: "code" holds a JSON document validation schema.
4. Every relationship is declared with "isForeignKey" and "references".
5. Valid JSON only: double quotes everywhere, no comments, no trailing commas.
6. The JSON object comes first. Any explanation goes after it.
"""

FIRST_TURN_PROMPT = """
You are a friendly database schema design assistant.
Greet the user and find out what they want to build. Ask about the main things
their application stores. Do not produce a schema yet.
"""

SCHEMA_REQUEST_PROMPT = """
The user asked for their database schema; it is being generated and shown
separately above the chat.
- Confirm the schema is being generated.
- Summarise the requirements you understood as a short list.
- Offer to adjust it after they review it.
Never include SQL, JSON or any schema code in this reply.
"""

LONG_CONVERSATION_PROMPT = """
You are a database schema design assistant refining requirements.
- If details are still missing, ask focused follow-up questions about entities,
  relationships and business rules.
- If you have enough, summarise and ask whether they are ready for the schema
  (they can say "generate the schema").
- If they asked for changes to an existing schema, acknowledge them and say the
  updated schema will appear above the chat.
Never include SQL or schema code in your reply.
"""

EARLY_CONVERSATION_PROMPT = """
You are a database schema design assistant gathering requirements.
Ask conversational follow-up questions about the main entities, how they relate,
their important fields and any business rules. Give short examples for their
domain. Do not suggest generating the schema until the requirements are clear.
Never include SQL or schema code in your reply.
"""

FENCED_BLOCK_RE = re.compile(r"```.*?(?:```|$)", re.DOTALL)
# Only whole statements; prose that merely mentions CREATE TABLE stays
CREATE_TABLE_STATEMENT_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[^\s(]+\s*\(.*?\)[^;()]*;",
    re.IGNORECASE | re.DOTALL,
)


def _strip_schema_code_from_text(text: str) -> str:
    """Chat bubble mein schema code nahi: schema alag surface pe render hota hai."""
    if not text:
        return text or ""
    stripped = FENCED_BLOCK_RE.sub("", text)
    stripped = CREATE_TABLE_STATEMENT_RE.sub("", stripped)
    stripped = re.sub(r"\n{3,}", "\n\n", stripped).strip()
    return stripped or SCHEMA_SHOWN_REPLY


def select_chat_prompt(messages: list[Message]) -> str:
    """Stage-dependent instruction for the reply."""
    if len(messages) == 1 and messages[0].is_user:
        return FIRST_TURN_PROMPT
    last = messages[-1] if messages else None
    if last is not None and last.is_user and is_schema_generation_request(last.content):
        return SCHEMA_REQUEST_PROMPT
    if len(messages) >= LONG_CONVERSATION_MESSAGES:
        return LONG_CONVERSATION_PROMPT
    return EARLY_CONVERSATION_PROMPT


def generate_schema(messages: list[Message], service: TextService) -> Schema:
    """Conversation -> Schema. Never raises on service trouble; falls back instead."""
    try:
        raw = service.complete(messages, SCHEMA_PROMPT, SCHEMA_OPTIONS)
    except ServiceError as e:
        logger.warning("Schema generation service error, using fallback schema: %s", e)
        return fallback_schema()
    return extract_schema(raw)


def get_chat_response(messages: list[Message], service: TextService) -> str:
    try:
        raw = service.complete(messages, select_chat_prompt(messages), CHAT_OPTIONS)
    except ServiceError as e:
        logger.warning("Chat reply service error: %s", e)
        return CHAT_ERROR_REPLY
    return _strip_schema_code_from_text(raw)
