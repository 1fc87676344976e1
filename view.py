'''State and behaviour of the single blog page.

``ViewState`` is an immutable snapshot of everything the page shows. The
module-level functions compute a new state from an old one and never touch the
store; ``BlogController`` is the only place where store calls and state
transitions meet.
'''
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from models import PostEntry
from store import PostStore

logger = logging.getLogger(__name__)

TRUNCATE_AT : int = 320
ELLIPSIS : str = '…'


@dataclass(frozen=True)
class ViewState:
    posts: Tuple[PostEntry, ...] = ()
    editing_id: Optional[str] = None
    search: str = ''
    title: str = ''
    author: str = ''
    content: str = ''
    expanded: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def editing(self) -> bool:
        return self.editing_id is not None

    def to_session(self) -> Dict[str, Any]:
        '''Edit target and expanded cards; field values are never carried in the cookie.'''
        return {
            'editing_id': self.editing_id,
            'expanded': sorted(self.expanded),
        }

    @classmethod
    def from_session(cls, data:Mapping[str, Any], search:str='') -> 'ViewState':
        return cls(
            editing_id=data.get('editing_id'),
            search=search,
            expanded=frozenset(data.get('expanded', ())),
        )


class Card(NamedTuple):
    post: PostEntry
    text: str
    collapsible: bool
    expanded: bool


def is_long(content:str) -> bool:
    return len(content) > TRUNCATE_AT


def truncate(content:str) -> str:
    if not is_long(content):
        return content
    return content[:TRUNCATE_AT] + ELLIPSIS


def matches(post:PostEntry, search:str) -> bool:
    needle : str = search.lower()
    return (
        needle in post.title.lower()
        or needle in post.author.lower()
        or needle in post.content.lower()
    )


def filter_posts(posts:Sequence[PostEntry], search:str) -> List[PostEntry]:
    if not search:
        return list(posts)
    return [post for post in posts if matches(post, search)]


def is_submittable(state:ViewState) -> bool:
    return bool(state.title and state.author and state.content)


def set_fields(state:ViewState, title:str, author:str, content:str) -> ViewState:
    return replace(state, title=title, author=author, content=content)


def clear_form(state:ViewState) -> ViewState:
    return replace(state, editing_id=None, title='', author='', content='')


def start_edit(state:ViewState, post:PostEntry) -> ViewState:
    return replace(
        state,
        editing_id=post.id,
        title=post.title,
        author=post.author,
        content=post.content,
    )


def cancel_edit(state:ViewState) -> ViewState:
    return clear_form(state)


def set_search(state:ViewState, search:str) -> ViewState:
    return replace(state, search=search)


def toggle_expanded(state:ViewState, post_id:str) -> ViewState:
    return replace(state, expanded=state.expanded ^ {post_id})


def remove_post(state:ViewState, post_id:str) -> ViewState:
    return replace(
        state,
        posts=tuple(post for post in state.posts if post.id != post_id),
        expanded=state.expanded - {post_id},
    )


def replace_posts(state:ViewState, posts:Sequence[PostEntry], reset_expanded:bool=False) -> ViewState:
    '''Swap in a freshly fetched list.

    Expansion survives only for cards that are still present, and not at all
    when ``reset_expanded`` is set. An edit target still present fills the
    form from its fetched version; one that disappeared drops the form back
    to create mode.
    '''
    ids : FrozenSet[str] = frozenset(post.id for post in posts)
    expanded : FrozenSet[str] = frozenset() if reset_expanded else state.expanded & ids
    new_state : ViewState = replace(state, posts=tuple(posts), expanded=expanded)
    if new_state.editing_id is not None:
        target : Optional[PostEntry] = find_post(new_state, new_state.editing_id)
        new_state = clear_form(new_state) if target is None else start_edit(new_state, target)
    return new_state


def find_post(state:ViewState, post_id:str) -> Optional[PostEntry]:
    for post in state.posts:
        if post.id == post_id:
            return post
    return None


def cards(state:ViewState) -> List[Card]:
    shown : List[Card] = []
    for post in filter_posts(state.posts, state.search):
        collapsible : bool = is_long(post.content)
        expanded : bool = post.id in state.expanded
        text : str = post.content if expanded or not collapsible else truncate(post.content)
        shown.append(Card(post=post, text=text, collapsible=collapsible, expanded=expanded))
    return shown


class BlogController:
    '''Owns one ViewState and the store it is synchronised with.

    Store failures raise ``StoreUnavailable`` and leave ``state`` as it was
    before the failing store call. A write that went through is reflected in
    ``state`` even when the re-fetch after it fails.
    '''

    def __init__(self, store:PostStore, state:Optional[ViewState]=None) -> None:
        self.store = store
        self.state : ViewState = state if state is not None else ViewState()

    def load(self) -> ViewState:
        self.state = replace_posts(self.state, self.store.list())
        return self.state

    def refresh(self) -> None:
        '''Re-fetch after a mutation; expansion starts over.'''
        self.state = replace_posts(self.state, self.store.list(), reset_expanded=True)

    def set_fields(self, title:str, author:str, content:str) -> None:
        self.state = set_fields(self.state, title, author, content)

    def write(self) -> bool:
        '''Create or update from the form and clear it; False when a field is empty.'''
        state : ViewState = self.state
        if not is_submittable(state):
            logger.debug('submission with empty fields rejected')
            return False
        if state.editing_id is not None:
            self.store.update(state.editing_id, state.title, state.author, state.content)
        else:
            self.store.create(state.title, state.author, state.content)
        self.state = clear_form(state)
        return True

    def submit(self) -> bool:
        if not self.write():
            return False
        self.refresh()
        return True

    def edit(self, post_id:str) -> bool:
        post : Optional[PostEntry] = find_post(self.state, post_id)
        if post is None:
            return False
        self.state = start_edit(self.state, post)
        return True

    def cancel(self) -> None:
        self.state = cancel_edit(self.state)

    def delete(self, post_id:str) -> None:
        self.store.delete(post_id)
        self.state = remove_post(self.state, post_id)
        self.refresh()

    def search(self, text:str) -> None:
        self.state = set_search(self.state, text)

    def toggle(self, post_id:str) -> None:
        self.state = toggle_expanded(self.state, post_id)

    @property
    def cards(self) -> List[Card]:
        return cards(self.state)
