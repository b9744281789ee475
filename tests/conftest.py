import pytest

from api import create_app
from calculator import CalculatorEngine
from memory_database import MemoryDatabase
from memory_manager import MemoryManager


@pytest.fixture
def engine():
    return CalculatorEngine()


@pytest.fixture
def db(tmp_path):
    database = MemoryDatabase(str(tmp_path / "memory.db"))
    yield database
    database.close()


@pytest.fixture
def manager(db):
    mgr = MemoryManager(db)
    mgr.load()
    return mgr


@pytest.fixture
def client(tmp_path):
    app = create_app(db_path=str(tmp_path / "api.db"), language="en")
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client


def _press(engine, *keys):
    """Feed key labels to the engine the way a keypad would"""
    actions = {
        '.': engine.decimal_point,
        '=': engine.equals,
        'C': engine.clear,
        'CE': engine.clear_entry,
        '<': engine.backspace,
        '±': engine.negate,
        '%': engine.percent,
        'sqr': engine.square,
        '√': engine.square_root,
        '1/x': engine.inverse,
    }
    for key in keys:
        if key in actions:
            actions[key]()
        elif key in ('+', '−', '×', '÷', '-', '*', '/'):
            engine.operator(key)
        else:
            for ch in key:
                engine.digit(ch)
    return engine.snapshot()


@pytest.fixture
def press(engine):
    return lambda *keys: _press(engine, *keys)
