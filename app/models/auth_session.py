from sqlalchemy import Column, BigInteger, String
from app.db.session import Base


class AuthSession(Base):
    """Server-side session; the id travels in the session_id cookie."""
    __tablename__ = "auth_sessions"

    id = Column(String(100), primary_key=True, index=True)
    user_id = Column(String(50), nullable=False, index=True)
    created_at = Column(BigInteger, nullable=False)  # epoch ms
