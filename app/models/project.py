from sqlalchemy import Column, BigInteger, String, JSON
from app.db.session import Base


class Project(Base):
    """One project document. messages/schema are stored whole and replaced whole."""
    __tablename__ = "projects"

    id = Column(String(50), primary_key=True, index=True)
    title = Column(String(255), nullable=False, default="New Project")
    user_id = Column(String(50), nullable=True, index=True)  # null = unowned
    messages = Column(JSON, nullable=False, default=list)
    schema_data = Column("schema", JSON, nullable=True)
    created_at = Column(BigInteger, nullable=False)  # epoch ms
    updated_at = Column(BigInteger, nullable=False)
