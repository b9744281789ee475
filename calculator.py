"""
Calculator Engine for PocketCalc
Handles digit entry, operator chaining, repeated equals and unary operations

The engine state is an immutable EngineState. Every key press is an Event and
transition(state, event, locale) returns the next state together with the
history entry the event produced (or None).
"""
import logging
import math
from collections import namedtuple
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

import config
from number_formatter import format_number, parse_number

logger = logging.getLogger("pocketcalc.calculator")

# ASCII keys accepted in place of the display glyphs
_OPERATOR_ALIASES = {"-": "−", "*": "×", "/": "÷"}
DIGITS = "0123456789"


class Operator(Enum):
    ADD = "+"
    SUB = "−"
    MUL = "×"
    DIV = "÷"

    @classmethod
    def from_symbol(cls, symbol):
        """Resolve a key label such as '+' or '×' to an Operator"""
        if symbol is None:
            raise ValueError("operator is required")
        if isinstance(symbol, cls):
            return symbol
        if not isinstance(symbol, str):
            raise ValueError(f"Unknown operator: {symbol!r}")
        try:
            return cls(_OPERATOR_ALIASES.get(symbol, symbol))
        except ValueError:
            raise ValueError(f"Unknown operator: {symbol!r}") from None


class Phase(Enum):
    IDLE = "idle"
    OPERATOR_PENDING = "operator_pending"
    JUST_CALCULATED = "just_calculated"


class EventKind(Enum):
    DIGIT = "digit"
    DECIMAL = "decimal"
    OPERATOR = "operator"
    EQUALS = "equals"
    CLEAR = "clear"
    CLEAR_ENTRY = "clear_entry"
    BACKSPACE = "backspace"
    NEGATE = "negate"
    PERCENT = "percent"
    SQUARE = "square"
    SQUARE_ROOT = "square_root"
    INVERSE = "inverse"
    SELECT_HISTORY = "select_history"
    SET_DISPLAY = "set_display"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    value: object = None
    new_entry: bool = True


@dataclass(frozen=True)
class HistoryItem:
    expression: str
    result: str


@dataclass(frozen=True)
class EngineState:
    display: str = "0"
    expression: str = ""
    current_value: float = 0.0
    stored_value: float = 0.0
    phase: Phase = Phase.IDLE
    operator: Optional[Operator] = None
    last_operator: Optional[Operator] = None
    last_operand: float = 0.0
    is_new_entry: bool = True


@dataclass(frozen=True)
class Snapshot:
    """What the presentation layer renders after each operation"""
    display: str
    expression: str
    history: Tuple[HistoryItem, ...]


DisplayLocale = namedtuple("DisplayLocale", ["separator", "error_text"])


def calculate(left, op, right):
    """Evaluate one binary operation; division by zero gives NaN"""
    op = Operator.from_symbol(op)
    if op is Operator.ADD:
        return left + right
    if op is Operator.SUB:
        return left - right
    if op is Operator.MUL:
        return left * right
    return left / right if right != 0 else math.nan


def _require(value, name):
    if value is None:
        raise ValueError(f"{name} is required")
    return value


def _parse(text, locale):
    return parse_number(text, locale.separator)


def _parse_or_zero(text, locale):
    value = _parse(text, locale)
    return 0.0 if value is None else value


def _fmt(value, locale):
    return format_number(value, locale.separator)


def _show_error(state, locale, **changes):
    return replace(state, display=locale.error_text, is_new_entry=True, **changes)


def _digit(state, event, locale):
    digit = _require(event.value, "digit")
    if not isinstance(digit, str) or len(digit) != 1 or digit not in DIGITS:
        raise ValueError(f"Not a digit: {digit!r}")
    if state.is_new_entry:
        return replace(state, display=digit, is_new_entry=False), None
    if state.display == "0":
        if digit == "0":
            return state, None
        return replace(state, display=digit), None
    return replace(state, display=state.display + digit), None


def _decimal(state, event, locale):
    sep = locale.separator
    if state.is_new_entry:
        return replace(state, display="0" + sep, is_new_entry=False), None
    if sep in state.display:
        return state, None
    return replace(state, display=state.display + sep), None


def _chain(state, locale):
    """Evaluate the pending operation when another operator is pressed mid-entry"""
    right = _parse_or_zero(state.display, locale)
    result = calculate(state.stored_value, state.operator, right)
    if not math.isfinite(result):
        return _show_error(state, locale, current_value=right, operator=None, phase=Phase.IDLE)
    return replace(
        state,
        current_value=right,
        stored_value=result,
        display=_fmt(result, locale),
        is_new_entry=True,
    )


def _operator(state, event, locale):
    op = Operator.from_symbol(event.value)
    if not state.is_new_entry and state.operator is not None:
        state = _chain(state, locale)

    value = _parse_or_zero(state.display, locale)
    return replace(
        state,
        current_value=value,
        stored_value=value,
        operator=op,
        phase=Phase.OPERATOR_PENDING,
        expression=f"{_fmt(value, locale)} {op.value}",
        is_new_entry=True,
    ), None


def _equals(state, event, locale):
    if state.phase is Phase.JUST_CALCULATED and state.last_operator is not None:
        # Replay: the fixed right operand against whatever is on the display
        left = _parse_or_zero(state.display, locale)
        op, right = state.last_operator, state.last_operand
        expression = f"{_fmt(left, locale)} {op.value} {_fmt(right, locale)} ="
        state = replace(state, stored_value=left, expression=expression)
        result = calculate(left, op, right)
        if not math.isfinite(result):
            return _show_error(state, locale, phase=Phase.IDLE), None
        result_text = _fmt(result, locale)
        return replace(state, display=result_text, is_new_entry=True), HistoryItem(expression, result_text)

    if state.operator is None:
        return state, None

    left, op = state.stored_value, state.operator
    right = _parse_or_zero(state.display, locale)
    expression = f"{_fmt(left, locale)} {op.value} {_fmt(right, locale)} ="
    state = replace(
        state,
        current_value=right,
        last_operator=op,
        last_operand=right,
        expression=expression,
        operator=None,
    )
    result = calculate(left, op, right)
    if not math.isfinite(result):
        return _show_error(state, locale, phase=Phase.IDLE), None

    result_text = _fmt(result, locale)
    state = replace(
        state,
        stored_value=result,
        display=result_text,
        is_new_entry=True,
        phase=Phase.JUST_CALCULATED,
    )
    return state, HistoryItem(expression, result_text)


def _clear(state, event, locale):
    return EngineState(), None


def _clear_entry(state, event, locale):
    return replace(state, display="0", is_new_entry=True), None


def _backspace(state, event, locale):
    current = state.display
    if state.is_new_entry or not current:
        return state, None
    if len(current) == 1 or (len(current) == 2 and current.startswith("-")):
        return replace(state, display="0", is_new_entry=True), None
    return replace(state, display=current[:-1]), None


def _negate(state, event, locale):
    value = _parse(state.display, locale)
    if value is None or value == 0:
        return state, None
    return replace(state, display=_fmt(-value, locale)), None


def _percent(state, event, locale):
    value = _parse(state.display, locale)
    if value is None:
        return state, None
    if state.operator is not None:
        value = state.stored_value * (value / 100)
    else:
        value = value / 100
    if not math.isfinite(value):
        return _show_error(state, locale), None
    return replace(state, display=_fmt(value, locale), is_new_entry=True), None


def _unary(state, locale, wrapper, func, invalid):
    """Shared body of sqr(x), √(x) and 1/(x)"""
    value = _parse(state.display, locale)
    if value is None:
        return state, None
    if invalid(value):
        return _show_error(state, locale), None
    result = func(value)
    if not math.isfinite(result):
        return _show_error(state, locale), None
    return replace(
        state,
        expression=wrapper.format(_fmt(value, locale)),
        display=_fmt(result, locale),
        is_new_entry=True,
    ), None


def _square(state, event, locale):
    return _unary(state, locale, "sqr({})", lambda x: x * x, lambda x: False)


def _square_root(state, event, locale):
    return _unary(state, locale, "√({})", math.sqrt, lambda x: x < 0)


def _inverse(state, event, locale):
    return _unary(state, locale, "1/({})", lambda x: 1 / x, lambda x: x == 0)


def _select_history(state, event, locale):
    item = _require(event.value, "history item")
    value = _parse(item.result, locale)
    return replace(
        state,
        expression=item.expression,
        display=item.result,
        stored_value=state.stored_value if value is None else value,
        operator=None,
        phase=Phase.IDLE,
        is_new_entry=True,
    ), None


def _set_display(state, event, locale):
    text = _require(event.value, "text")
    return replace(state, display=text, is_new_entry=event.new_entry), None


_HANDLERS = {
    EventKind.DIGIT: _digit,
    EventKind.DECIMAL: _decimal,
    EventKind.OPERATOR: _operator,
    EventKind.EQUALS: _equals,
    EventKind.CLEAR: _clear,
    EventKind.CLEAR_ENTRY: _clear_entry,
    EventKind.BACKSPACE: _backspace,
    EventKind.NEGATE: _negate,
    EventKind.PERCENT: _percent,
    EventKind.SQUARE: _square,
    EventKind.SQUARE_ROOT: _square_root,
    EventKind.INVERSE: _inverse,
    EventKind.SELECT_HISTORY: _select_history,
    EventKind.SET_DISPLAY: _set_display,
}


def transition(state, event, locale=DisplayLocale(".", config.ERROR_TEXT)):
    """Apply one event; returns (next_state, history_item_or_None)"""
    return _HANDLERS[event.kind](state, event, locale)


class CalculatorEngine:
    """Holds the current EngineState and the calculation history (newest first)"""

    def __init__(self, decimal_separator=".", error_text=config.ERROR_TEXT):
        self.locale = DisplayLocale(decimal_separator, error_text)
        self.state = EngineState()
        self.history = []

    @property
    def display_text(self):
        return self.state.display

    @property
    def expression_text(self):
        return self.state.expression

    @property
    def phase(self):
        return self.state.phase

    @property
    def error_text(self):
        return self.locale.error_text

    @property
    def decimal_separator(self):
        return self.locale.separator

    def apply(self, event):
        """Run one event through the state machine and record its history entry"""
        state, item = transition(self.state, event, self.locale)
        if state.display == self.locale.error_text and self.state.display != state.display:
            logger.debug("%s produced no finite result (expression %r)", event.kind.value, state.expression)
        self.state = state
        if item is not None:
            self.history.insert(0, item)
        return self.snapshot()

    def snapshot(self):
        """Current display, expression and history"""
        return Snapshot(self.state.display, self.state.expression, tuple(self.history))

    def digit(self, digit):
        """Enter one digit"""
        return self.apply(Event(EventKind.DIGIT, _require(digit, "digit")))

    def decimal_point(self):
        """Enter the decimal separator (once per number)"""
        return self.apply(Event(EventKind.DECIMAL))

    def operator(self, op):
        """Select a binary operator, evaluating a pending one first when chaining"""
        return self.apply(Event(EventKind.OPERATOR, _require(op, "operator")))

    def equals(self):
        """Evaluate, or repeat the last operation when pressed again"""
        return self.apply(Event(EventKind.EQUALS))

    def clear(self):
        """Reset the calculation; history is kept"""
        return self.apply(Event(EventKind.CLEAR))

    def clear_entry(self):
        return self.apply(Event(EventKind.CLEAR_ENTRY))

    def backspace(self):
        return self.apply(Event(EventKind.BACKSPACE))

    def negate(self):
        return self.apply(Event(EventKind.NEGATE))

    def percent(self):
        """x/100, or x percent of the left operand while an operator is pending"""
        return self.apply(Event(EventKind.PERCENT))

    def square(self):
        return self.apply(Event(EventKind.SQUARE))

    def square_root(self):
        return self.apply(Event(EventKind.SQUARE_ROOT))

    def inverse(self):
        return self.apply(Event(EventKind.INVERSE))

    def select_history_item(self, item):
        """Load a history entry onto the display and continue from its result"""
        return self.apply(Event(EventKind.SELECT_HISTORY, _require(item, "history item")))

    def set_display_text(self, text, is_new_entry=True):
        """Put external text (e.g. a recalled memory value) on the display"""
        return self.apply(Event(EventKind.SET_DISPLAY, _require(text, "text"), is_new_entry))

    def clear_history(self):
        self.history.clear()
        return self.snapshot()
