"""
Flask REST API for PocketCalc
Drives one calculator engine and the memory list through JSON endpoints
"""
import logging
import sqlite3
import threading
from dataclasses import asdict

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
import locales
from calculator import CalculatorEngine
from memory_database import MemoryDatabase
from memory_manager import MemoryManager
from number_formatter import format_number, parse_number

logger = logging.getLogger("pocketcalc.api")

# URL action -> CalculatorEngine method taking no arguments
KEY_ACTIONS = {
    'decimal': 'decimal_point',
    'equals': 'equals',
    'clear': 'clear',
    'clear-entry': 'clear_entry',
    'backspace': 'backspace',
    'negate': 'negate',
    'percent': 'percent',
    'square': 'square',
    'square-root': 'square_root',
    'inverse': 'inverse',
}


def create_app(db_path=None, language=None):
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    language = language or config.DEFAULT_LANGUAGE
    separator = locales.get_decimal_separator(language)
    tr = locales.get_translator(language)

    engine = CalculatorEngine(decimal_separator=separator, error_text=tr(config.ERROR_TEXT))
    memory = MemoryManager(MemoryDatabase(db_path), decimal_separator=separator)
    memory.load()

    # The engine is not safe for concurrent use; requests take turns
    lock = threading.Lock()

    def state_payload():
        snapshot = engine.snapshot()
        return {
            'display': snapshot.display,
            'expression': snapshot.expression,
            'history': [asdict(item) for item in snapshot.history],
            'memory': [item.to_dict() for item in memory.items],
        }

    def ok():
        return jsonify({'success': True, 'data': state_payload()})

    def fail(message, status):
        return jsonify({'success': False, 'error': message}), status

    def display_value():
        value = parse_number(engine.display_text, separator)
        if value is None:
            raise ValueError("Display does not hold a number")
        return value

    def recall_onto_display(value):
        if value is not None:
            engine.set_display_text(format_number(value, separator))

    def run(action):
        """Run action under the lock and map failures to HTTP errors"""
        try:
            with lock:
                action()
                return ok()
        except KeyError as e:
            return fail(str(e.args[0]) if e.args else str(e), 404)
        except ValueError as e:
            return fail(str(e), 400)
        except sqlite3.Error as e:
            logger.exception("Memory storage failed")
            return fail(str(e), 500)

    def body_field(name):
        data = request.get_json(silent=True) or {}
        if name not in data:
            raise ValueError(f"Missing field: {name}")
        return data[name]

    @app.route('/api')
    def api_info():
        """List the available endpoints"""
        return jsonify({
            'success': True,
            'data': {
                'name': config.APP_NAME,
                'version': config.VERSION,
                'language': language,
                'languages': locales.supported_languages(),
                'endpoints': sorted(str(rule) for rule in app.url_map.iter_rules()
                                    if str(rule).startswith('/api')),
            }
        })

    @app.route('/api/state')
    def get_state():
        with lock:
            return ok()

    @app.route('/api/calculator/digit', methods=['POST'])
    def press_digit():
        return run(lambda: engine.digit(body_field('digit')))

    @app.route('/api/calculator/operator', methods=['POST'])
    def press_operator():
        return run(lambda: engine.operator(body_field('operator')))

    @app.route('/api/calculator/<action>', methods=['POST'])
    def press_key(action):
        method = KEY_ACTIONS.get(action)
        if method is None:
            return fail(f"Unknown action: {action}", 404)
        return run(getattr(engine, method))

    @app.route('/api/history/clear', methods=['POST'])
    def clear_history():
        return run(engine.clear_history)

    @app.route('/api/history/select', methods=['POST'])
    def select_history():
        def action():
            index = body_field('index')
            if not isinstance(index, int) or not 0 <= index < len(engine.history):
                raise ValueError(f"No history item at index {index}")
            engine.select_history_item(engine.history[index])
        return run(action)

    @app.route('/api/memory')
    def get_memory():
        with lock:
            return jsonify({
                'success': True,
                'data': [item.to_dict() for item in memory.items],
                'count': len(memory.items),
            })

    @app.route('/api/memory/store', methods=['POST'])
    def memory_store():
        return run(lambda: memory.store(display_value()))

    @app.route('/api/memory/add', methods=['POST'])
    def memory_add():
        return run(lambda: memory.add(display_value()))

    @app.route('/api/memory/subtract', methods=['POST'])
    def memory_subtract():
        return run(lambda: memory.subtract(display_value()))

    @app.route('/api/memory/clear', methods=['POST'])
    def memory_clear():
        return run(memory.clear)

    @app.route('/api/memory/recall', methods=['POST'])
    def memory_recall():
        return run(lambda: recall_onto_display(memory.recall()))

    @app.route('/api/memory/<int:item_id>/add', methods=['POST'])
    def memory_item_add(item_id):
        return run(lambda: memory.add_to_item(item_id, display_value()))

    @app.route('/api/memory/<int:item_id>/subtract', methods=['POST'])
    def memory_item_subtract(item_id):
        return run(lambda: memory.subtract_from_item(item_id, display_value()))

    @app.route('/api/memory/<int:item_id>/recall', methods=['POST'])
    def memory_item_recall(item_id):
        return run(lambda: recall_onto_display(memory.recall(item_id)))

    @app.route('/api/memory/<int:item_id>', methods=['DELETE'])
    def memory_item_delete(item_id):
        return run(lambda: memory.delete_item(item_id))

    return app
