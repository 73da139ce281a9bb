from sqlalchemy import Column, Text
from app.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Text, primary_key=True)
    email = Column(Text)
    full_name = Column(Text)
    user_type = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
