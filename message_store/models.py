from sqlalchemy.orm import declarative_base
from sqlalchemy import BigInteger, Column, String, Text

Base = declarative_base()


class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    attachment_url = Column(Text, nullable=False)
    created_at = Column(BigInteger, nullable=False)  # ns since epoch
    updated_at = Column(BigInteger, nullable=True)
