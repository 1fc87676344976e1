from dataclasses import dataclass
from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    '''Naive UTC timestamp, matching what SQLite hands back.'''
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class PostEntry:
    id: str
    title: str
    author: str
    content: str
    created_at: datetime


class Post(db.Model):
    __tablename__ = 'posts'

    id = db.Column(db.Integer, primary_key=True)
    short_id = db.Column(db.String(12), unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_entry(self) -> PostEntry:
        return PostEntry(
            id=self.short_id,
            title=self.title,
            author=self.author,
            content=self.content,
            created_at=self.created_at,
        )
