"""
Study Helper - JSON web interface.
Exposes the subject list and question browser so a front end can redraw from the returned state.
"""

from __future__ import annotations

import argparse
import threading
from dataclasses import asdict
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

from . import db
from .browser import QuestionBrowser
from .errors import InvalidStateError, NotFoundError
from .fetcher import FetchFailed, StudyFetcher, SubjectsFetched
from .importer import ImportMerger
from .records import BrowserView, SortOrder, SubjectListView
from .settings import Settings
from .subjects import SubjectListController


class StudyState:
    """Per-process controllers. Requests are serialized through ``lock``."""

    def __init__(self, settings: Settings, store: db.StudyStore, fetcher: StudyFetcher) -> None:
        self.settings = settings
        self.store = store
        self.fetcher = fetcher
        self.subjects = SubjectListController(store, settings.subject_order, settings.default_question)
        self.merger = ImportMerger(store, fetcher)
        self.browser: Optional[QuestionBrowser] = None
        self.lock = threading.Lock()

    def require_browser(self) -> QuestionBrowser:
        if self.browser is None:
            raise InvalidStateError("No subject is open")
        return self.browser


def _state() -> StudyState:
    return current_app.extensions["study_helper"]


def _subject_list_json(view: SubjectListView) -> Dict[str, Any]:
    return {
        'status': 'success',
        'subjects': [asdict(subject) for subject in view.subjects],
        'sort_order': view.sort_order.value,
        'selected_index': view.selected_index,
        'action_active': view.action_active,
    }


def _browser_json(view: BrowserView) -> Dict[str, Any]:
    return {
        'status': 'success',
        'title': view.title,
        'subject': view.subject_text,
        'total': view.total,
        'current_index': view.current_index,
        'question': asdict(view.question) if view.question else None,
        'revealed': view.revealed,
        'can_undo': view.can_undo,
    }


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ''


def create_app(settings: Optional[Settings] = None, store: Optional[db.StudyStore] = None,
               fetcher: Optional[StudyFetcher] = None, seed: bool = True) -> Flask:
    settings = settings or Settings.from_env()
    store = store or db.StudyStore.for_path(settings.db_path)
    if seed and db.seed_starter_data(store) and settings.debug:
        print("✅ Starter subjects added on startup")

    app = Flask(__name__)
    state = StudyState(settings, store, fetcher or StudyFetcher(settings.import_url))
    state.subjects.load()
    app.extensions["study_helper"] = state

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError) -> Any:
        return jsonify({'status': 'error', 'message': str(e)}), 404

    @app.errorhandler(InvalidStateError)
    def handle_invalid_state(e: InvalidStateError) -> Any:
        return jsonify({'status': 'error', 'message': str(e)}), 409

    # ── Subjects ──────────────────────────────────────────────────

    @app.route('/api/subjects')
    def api_subjects() -> Any:
        """List subjects, reloading when a sort order is given."""
        state = _state()
        order = request.args.get('order')
        with state.lock:
            if order is not None:
                state.subjects.load(SortOrder.from_setting(order))
            return jsonify(_subject_list_json(state.subjects.view()))

    @app.route('/api/subjects', methods=['POST'])
    def api_add_subject() -> Any:
        state = _state()
        text = _text(_payload(), 'text')
        with state.lock:
            subject = state.subjects.add_subject(text)
            body = _subject_list_json(state.subjects.view())
        body['added'] = asdict(subject) if subject else None
        return jsonify(body), 201 if subject else 200

    @app.route('/api/subjects/<int:index>/select', methods=['POST'])
    def api_select_subject(index: int) -> Any:
        state = _state()
        with state.lock:
            started = state.subjects.select_for_action(index)
            body = _subject_list_json(state.subjects.view())
        body['started'] = started
        return jsonify(body)

    @app.route('/api/subjects/action/delete', methods=['POST'])
    def api_confirm_delete() -> Any:
        state = _state()
        with state.lock:
            try:
                deleted = state.subjects.confirm_delete()
            finally:
                if state.browser is not None and state.store.get_subject(state.browser.subject.id) is None:
                    state.browser = None
            body = _subject_list_json(state.subjects.view())
        body['deleted'] = asdict(deleted)
        return jsonify(body)

    @app.route('/api/subjects/action/cancel', methods=['POST'])
    def api_cancel_action() -> Any:
        state = _state()
        with state.lock:
            state.subjects.cancel_action()
            return jsonify(_subject_list_json(state.subjects.view()))

    @app.route('/api/subjects/<int:index>/open', methods=['POST'])
    def api_open_subject(index: int) -> Any:
        state = _state()
        with state.lock:
            state.browser = state.subjects.open_subject(index)
            return jsonify(_browser_json(state.browser.view()))

    # ── Question browser ──────────────────────────────────────────

    @app.route('/api/study')
    def api_study() -> Any:
        state = _state()
        with state.lock:
            return jsonify(_browser_json(state.require_browser().view()))

    @app.route('/api/study/show/<int(signed=True):index>', methods=['POST'])
    def api_show(index: int) -> Any:
        state = _state()
        with state.lock:
            browser = state.require_browser()
            browser.show(index)
            return jsonify(_browser_json(browser.view()))

    @app.route('/api/study/<action>', methods=['POST'])
    def api_study_action(action: str) -> Any:
        """Navigation, reveal toggle and undo."""
        state = _state()
        with state.lock:
            browser = state.require_browser()
            if action == 'next':
                browser.next()
            elif action == 'previous':
                browser.previous()
            elif action == 'reveal':
                browser.toggle_reveal()
            elif action == 'undo':
                browser.undo_delete()
            else:
                return jsonify({'status': 'error', 'message': f'Unknown action: {action}'}), 404
            return jsonify(_browser_json(browser.view()))

    @app.route('/api/study/new')
    def api_new_question() -> Any:
        state = _state()
        with state.lock:
            draft = state.require_browser().new_question()
        return jsonify({'status': 'success', 'question': asdict(draft)})

    @app.route('/api/study/questions', methods=['POST'])
    def api_add_question() -> Any:
        state = _state()
        data = _payload()
        with state.lock:
            browser = state.require_browser()
            browser.add(_text(data, 'text'), _text(data, 'answer'))
            return jsonify(_browser_json(browser.view())), 201

    @app.route('/api/study/question', methods=['PUT'])
    def api_edit_question() -> Any:
        state = _state()
        data = _payload()
        with state.lock:
            browser = state.require_browser()
            browser.edit(_text(data, 'text'), _text(data, 'answer'))
            return jsonify(_browser_json(browser.view()))

    @app.route('/api/study/question', methods=['DELETE'])
    def api_delete_question() -> Any:
        state = _state()
        with state.lock:
            browser = state.require_browser()
            browser.delete()
            return jsonify(_browser_json(browser.view()))

    # ── Import ────────────────────────────────────────────────────

    @app.route('/api/import/subjects')
    def api_import_subjects() -> Any:
        """Subjects offered by the remote source."""
        result = _state().fetcher.fetch_subjects()
        if isinstance(result, FetchFailed):
            return jsonify({'status': 'error', 'message': f'{result.reason}. Try again later.'}), 502
        if not isinstance(result, SubjectsFetched):
            return jsonify({'status': 'error', 'message': 'Unexpected response'}), 502
        return jsonify({'status': 'success', 'subjects': [asdict(s) for s in result.subjects]})

    @app.route('/api/import', methods=['POST'])
    def api_import() -> Any:
        """Import the chosen remote subjects and report one outcome per subject."""
        state = _state()
        requested = _payload().get('subjects')
        if not isinstance(requested, list):
            return jsonify({'status': 'error', 'message': "'subjects' must be a list of subject names"}), 400
        wanted = {text for text in requested if isinstance(text, str)}
        result = state.fetcher.fetch_subjects()
        if isinstance(result, FetchFailed):
            return jsonify({'status': 'error', 'message': f'{result.reason}. Try again later.'}), 502
        if not isinstance(result, SubjectsFetched):
            return jsonify({'status': 'error', 'message': 'Unexpected response'}), 502
        candidates = [s for s in result.subjects if s.text in wanted]
        outcomes = state.merger.import_subjects(candidates)
        with state.lock:
            state.subjects.load()
        return jsonify({
            'status': 'success',
            'outcomes': [
                {
                    'subject': o.subject_text,
                    'status': o.status.value,
                    'count': o.count,
                    'message': o.message,
                }
                for o in outcomes
            ],
        })

    return app


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Study Helper web API')
    parser.add_argument('--host', default='127.0.0.1', help='Host IP to bind to (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=5000, help='Port to bind to (default: 5000)')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    args = parser.parse_args()

    app = create_app()
    print(f"🚀 Study Helper listening on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)
