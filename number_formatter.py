"""
Number formatting for PocketCalc
Converts floats to display strings and display strings back to floats
"""
import re

# Whole numbers below this magnitude are shown without fraction or exponent
INTEGER_LIMIT = 1e15
SIGNIFICANT_DIGITS = 15

_NUMBER_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def format_number(value, separator="."):
    """Format a float for the calculator display"""
    value = float(value)
    if value.is_integer() and abs(value) < INTEGER_LIMIT:
        return str(int(value))

    formatted = format(value, f".{SIGNIFICANT_DIGITS}G")
    if separator != ".":
        formatted = formatted.replace(".", separator)

    exponent_index = formatted.find("E")
    if exponent_index < 0:
        return _trim_fraction_zeros(formatted, separator)

    # Only the mantissa is trimmed, "1E+20" keeps its exponent digits
    mantissa = formatted[:exponent_index]
    exponent = formatted[exponent_index:]
    return _trim_fraction_zeros(mantissa, separator) + exponent


def _trim_fraction_zeros(text, separator):
    """Drop trailing zeros after the separator and a dangling separator"""
    if separator not in text:
        return text
    text = text.rstrip("0")
    if text.endswith(separator):
        text = text[:-len(separator)]
    return text


def parse_number(text, separator="."):
    """Parse a display string, returning None when it is not a number"""
    if text is None:
        return None
    text = text.strip()
    if separator != ".":
        if "." in text:
            return None
        text = text.replace(separator, ".")
    if not _NUMBER_RE.match(text):
        return None
    return float(text)
