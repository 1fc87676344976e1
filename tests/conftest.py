from typing import Iterator, List

import pytest
from flask import Flask
from flask.testing import FlaskClient

from app import create_app
from models import PostEntry, db
from store import MemoryPostStore, SqlPostStore, StoreUnavailable


class FailingStore:
    '''Store whose every call fails the way an unreachable database does.'''

    def list(self) -> List[PostEntry]:
        raise StoreUnavailable('Could not list posts right now.')

    def create(self, title: str, author: str, content: str) -> PostEntry:
        raise StoreUnavailable('Could not create posts right now.')

    def update(self, post_id: str, title: str, author: str, content: str) -> None:
        raise StoreUnavailable('Could not update posts right now.')

    def delete(self, post_id: str) -> None:
        raise StoreUnavailable('Could not delete posts right now.')


class WriteFailsStore(MemoryPostStore):
    '''Lists fine, but refuses every create and update.'''

    def create(self, title: str, author: str, content: str) -> PostEntry:
        raise StoreUnavailable('Could not create posts right now.')

    def update(self, post_id: str, title: str, author: str, content: str) -> None:
        raise StoreUnavailable('Could not update posts right now.')


class ListFailsAfterWriteStore(MemoryPostStore):
    '''Accepts a write, then can no longer list.'''

    def __init__(self) -> None:
        super().__init__()
        self.written = False

    def create(self, title: str, author: str, content: str) -> PostEntry:
        post = super().create(title, author, content)
        self.written = True
        return post

    def update(self, post_id: str, title: str, author: str, content: str) -> None:
        super().update(post_id, title, author, content)
        self.written = True

    def list(self) -> List[PostEntry]:
        if self.written:
            raise StoreUnavailable('Could not list posts right now.')
        return super().list()


@pytest.fixture()
def memory_store() -> MemoryPostStore:
    return MemoryPostStore()


@pytest.fixture()
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture()
def write_fails_store() -> WriteFailsStore:
    return WriteFailsStore()


@pytest.fixture()
def list_fails_after_write_store() -> ListFailsAfterWriteStore:
    return ListFailsAfterWriteStore()


@pytest.fixture()
def app(memory_store: MemoryPostStore) -> Flask:
    return create_app(store=memory_store, config={'TESTING': True})


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def sql_app() -> Iterator[Flask]:
    app = create_app(config={'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite://'})
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture()
def sql_store(sql_app: Flask) -> Iterator[SqlPostStore]:
    with sql_app.app_context():
        yield SqlPostStore(db)
