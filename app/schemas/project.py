from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional


class FieldReference(BaseModel):
    table: str
    field: str


class SchemaField(BaseModel):
    """Frontend camelCase use karta hai: aliases accept karo."""
    name: str
    type: str = ""
    is_primary_key: bool = Field(False, alias="isPrimaryKey")
    is_foreign_key: bool = Field(False, alias="isForeignKey")
    references: Optional[FieldReference] = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _foreign_key_needs_reference(self):
        # isForeignKey => references; bina target ka flag drop
        if self.is_foreign_key and self.references is None:
            self.is_foreign_key = False
        return self


class SchemaTable(BaseModel):
    name: str
    fields: List[SchemaField] = Field(default_factory=list)


class Schema(BaseModel):
    tables: List[SchemaTable]
    type: Literal["sql", "nosql"]
    code: str


class Message(BaseModel):
    id: str
    content: str
    is_user: bool = Field(alias="isUser")
    timestamp: int  # epoch ms

    model_config = {"populate_by_name": True}


class Project(BaseModel):
    id: str
    title: str
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")
    messages: List[Message] = Field(default_factory=list)
    database_schema: Optional[Schema] = Field(None, alias="schema")
    user_id: Optional[str] = Field(None, alias="userId")

    model_config = {"populate_by_name": True}


class ProjectCreateRequest(BaseModel):
    title: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    title: Optional[str] = None
    database_schema: Optional[Schema] = Field(None, alias="schema")

    model_config = {"populate_by_name": True}
