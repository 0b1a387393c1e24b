"""Create tables and an optional demo user (demo@keymap.dev / demo1234)."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal, engine, Base
from app.db.repository import SqlProjectRepository, now_ms
from app.models import User, AuthSession, Project  # noqa: F401
from app.core.security import hash_password, new_id

Base.metadata.create_all(bind=engine)
db = SessionLocal()

if "--demo" in sys.argv and not db.query(User).filter(User.email == "demo@keymap.dev").first():
    user = User(
        id=new_id(),
        name="Demo",
        email="demo@keymap.dev",
        password_hash=hash_password("demo1234"),
        created_at=now_ms(),
    )
    db.add(user)
    db.commit()
    SqlProjectRepository(db).create_project("Demo Project", user_id=user.id)
    print("Created demo user: demo@keymap.dev / demo1234")

db.close()
print("Init complete.")
