import os, logging, secrets
from flask import Flask, Blueprint, Response, current_app, render_template, session, redirect, request, url_for
from typing import Union, Optional, Any, Mapping
from dotenv import load_dotenv

from models import db
from store import PostStore, SqlPostStore, StoreUnavailable
from view import BlogController, ViewState

load_dotenv()
logger = logging.getLogger(__name__)

STORE_EXTENSION : str = 'post_store'

blog : Blueprint = Blueprint('blog', __name__)


def create_app(store:Optional[PostStore]=None, config:Optional[Mapping[str, Any]]=None) -> Flask:
    '''Build the blog application.

    Without an explicit ``store`` the posts live in the SQL database named by
    ``DATABASE_URL`` and the tables are created on startup.
    '''
    app : Flask = Flask(__name__)
    app.secret_key = os.getenv('SECRET_KEY') or secrets.token_hex(16)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///data.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if config:
        app.config.update(config)

    if store is None:
        db.init_app(app)
        with app.app_context():
            db.create_all()
        store = SqlPostStore(db)

    app.extensions[STORE_EXTENSION] = store
    app.register_blueprint(blog)
    return app


def _search_arg() -> str:
    return request.values.get('q', '')


def _controller() -> BlogController:
    controller : BlogController = BlogController(
        current_app.extensions[STORE_EXTENSION], ViewState.from_session(session)
    )
    controller.search(_search_arg())
    return controller


def _save(controller:BlogController) -> None:
    session.update(controller.state.to_session())


def _back(anchor:Optional[str]=None) -> Response:
    q : str = _search_arg()
    return redirect(url_for('blog.index', q=q or None, _anchor=anchor))


def _page(controller:BlogController, error:Optional[str]=None) -> str:
    return render_template('index.html', state=controller.state, cards=controller.cards, error=error)


@blog.route('/')
def index() -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.load()
    _save(controller)
    return _page(controller)


@blog.route('/submit', methods=['POST'])
def submit_post() -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.load()
    controller.set_fields(
        request.form.get('title', ''),
        request.form.get('author', ''),
        request.form.get('content', ''),
    )
    try:
        if not controller.write():
            return _page(controller)
    except StoreUnavailable as error:
        logger.warning('submit failed: %s', error)
        return _page(controller, error=str(error)), 503
    _save(controller)
    controller.refresh()
    _save(controller)
    return _back()


@blog.route('/edit/<post_id>', methods=['POST'])
def edit_post(post_id:str) -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.load()
    if not controller.edit(post_id):
        logger.info('edit requested for unknown post %s', post_id)
    _save(controller)
    return _back()


@blog.route('/cancel', methods=['POST'])
def cancel_edit() -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.cancel()
    _save(controller)
    return _back()


@blog.route('/delete/<post_id>', methods=['POST'])
def delete_post(post_id:str) -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.load()
    controller.delete(post_id)
    _save(controller)
    return _back()


@blog.route('/toggle/<post_id>', methods=['POST'])
def toggle_post(post_id:str) -> Union[str, Any]:
    controller : BlogController = _controller()
    controller.toggle(post_id)
    _save(controller)
    return _back(anchor=f'post-{post_id}')


@blog.app_errorhandler(StoreUnavailable)
def store_unavailable(error:StoreUnavailable) -> Union[str, Any]:
    logger.warning('request %s %s failed: %s', request.method, request.path, error)
    return render_template('error.html', message=str(error)), 503


@blog.app_errorhandler(404)
def not_found(_error) -> Union[str, Any]:
    return render_template('error.html', message='Page not found.'), 404


if __name__ == '__main__':
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    port : int = int(os.getenv('PORT', '5000'))
    logger.info('Mini Blog running on port %d', port)
    create_app().run(host='0.0.0.0', port=port)
