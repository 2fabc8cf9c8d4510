from sqlalchemy import Column, Integer, String, TIMESTAMP
from datetime import datetime
from app.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String(100), nullable=False, default="")
    email = Column(String(255))
    role = Column(String(20), nullable=False, default="student")  # student / faculty / admin
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
