import logging
import secrets
import string
from itertools import count
from typing import Callable, Dict, Iterator, List, Optional, Protocol

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from models import Post, PostEntry, utcnow

logger = logging.getLogger(__name__)

ID_LENGTH : int = 12


class StoreUnavailable(RuntimeError):
    '''A list/create/update/delete call against the post store failed.'''


def generate_id(length:int=ID_LENGTH) -> str:
    return ''.join(secrets.choice(string.ascii_letters + string.digits) for _ in range(length))


def generate_unique_id(exists:Callable[[str], bool], length:int=ID_LENGTH) -> str:
    candidate : str = generate_id(length)
    while exists(candidate):
        candidate = generate_id(length)
    return candidate


class PostStore(Protocol):
    def list(self) -> List[PostEntry]: ...

    def create(self, title:str, author:str, content:str) -> PostEntry: ...

    def update(self, post_id:str, title:str, author:str, content:str) -> None: ...

    def delete(self, post_id:str) -> None: ...


class SqlPostStore:
    '''Post store backed by the ``posts`` table.

    Must be used inside an application context. Any SQLAlchemy failure rolls
    the session back and surfaces as :class:`StoreUnavailable`.
    '''

    def __init__(self, database:SQLAlchemy) -> None:
        self.db = database

    def _fail(self, action:str, exc:SQLAlchemyError) -> StoreUnavailable:
        self.db.session.rollback()
        logger.warning('post store %s failed: %s', action, exc)
        return StoreUnavailable(f'Could not {action} posts right now.')

    def _exists(self, short_id:str) -> bool:
        return Post.query.filter_by(short_id=short_id).first() is not None

    def list(self) -> List[PostEntry]:
        try:
            rows : List[Post] = Post.query.order_by(Post.created_at.desc(), Post.id.desc()).all()
        except SQLAlchemyError as exc:
            raise self._fail('list', exc) from exc
        return [row.to_entry() for row in rows]

    def create(self, title:str, author:str, content:str) -> PostEntry:
        try:
            new_post : Post = Post(
                short_id=generate_unique_id(self._exists),
                title=title,
                author=author,
                content=content,
                created_at=utcnow(),
            )
            self.db.session.add(new_post)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('create', exc) from exc
        logger.info('created post %s', new_post.short_id)
        return new_post.to_entry()

    def update(self, post_id:str, title:str, author:str, content:str) -> None:
        try:
            post : Optional[Post] = Post.query.filter_by(short_id=post_id).first()
            if post is None:
                logger.warning('update of unknown post %s ignored', post_id)
                return
            post.title = title
            post.author = author
            post.content = content
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('update', exc) from exc
        logger.info('updated post %s', post_id)

    def delete(self, post_id:str) -> None:
        try:
            post : Optional[Post] = Post.query.filter_by(short_id=post_id).first()
            if post is None:
                logger.warning('delete of unknown post %s ignored', post_id)
                return
            self.db.session.delete(post)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail('delete', exc) from exc
        logger.info('deleted post %s', post_id)


class MemoryPostStore:
    '''In-process store with the same ordering and id rules as SqlPostStore.'''

    def __init__(self) -> None:
        self._posts : Dict[str, PostEntry] = {}
        self._order : Dict[str, int] = {}
        self._seq : Iterator[int] = count()

    def list(self) -> List[PostEntry]:
        return sorted(
            self._posts.values(),
            key=lambda post: (post.created_at, self._order[post.id]),
            reverse=True,
        )

    def create(self, title:str, author:str, content:str) -> PostEntry:
        post_id : str = generate_unique_id(lambda candidate: candidate in self._order)
        post : PostEntry = PostEntry(
            id=post_id, title=title, author=author, content=content, created_at=utcnow()
        )
        self._posts[post_id] = post
        self._order[post_id] = next(self._seq)
        logger.info('created post %s', post_id)
        return post

    def update(self, post_id:str, title:str, author:str, content:str) -> None:
        post = self._posts.get(post_id)
        if post is None:
            logger.warning('update of unknown post %s ignored', post_id)
            return
        self._posts[post_id] = PostEntry(
            id=post_id, title=title, author=author, content=content, created_at=post.created_at
        )
        logger.info('updated post %s', post_id)

    def delete(self, post_id:str) -> None:
        if self._posts.pop(post_id, None) is None:
            logger.warning('delete of unknown post %s ignored', post_id)
            return
        logger.info('deleted post %s', post_id)
