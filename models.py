from sqlalchemy import Column, Integer, SmallInteger, String, Text
from database import Base


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_title = Column(String(255), nullable=False)
    task_description = Column(Text, nullable=False)
    # 0 or 1, see forms.bool_to_stored / forms.stored_to_bool
    complete = Column(SmallInteger, nullable=False, default=0)

    def __repr__(self):
        return f"<Task(id={self.id}, task_title='{self.task_title}', complete={self.complete})>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
