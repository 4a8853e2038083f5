"""
Formatter pipeline for ``{{name|formatter:arg1:arg2}}`` expressions.

Formatters are registered by name in a module-level table.  Each one
receives the raw value, its string form and the colon-separated arguments
and returns a string.  Formatters never raise: bad numeric arguments or
unparseable dates leave the value as it was, and unknown formatter names
pass the value through unchanged.
"""

from __future__ import annotations

import random
import re
import string
from collections.abc import Mapping
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Optional
from urllib.parse import quote, unquote

from dateutil import parser as dateutil_parser

from biblib.citations.extract import extract_title_words
from biblib.logger import clip, get_logger
from biblib.template.values import SEQUENCE_TYPES, format_number, stringify, to_json

_log = get_logger("template.formatters")

Formatter = Callable[[Any, str, list], str]

DEFAULT_TRUNCATE = 30
DEFAULT_RAND_LENGTH = 5
MAX_RAND_LENGTH = 32

_RAND_ALPHABET = string.ascii_letters + string.digits

_NUMBERED_RE = re.compile(r"^(abbr|truncate|rand)(\d+)$")
_LEADING_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
_WORD_START_RE = re.compile(r"(^|\s)(\S)")

# encodeURIComponent leaves these unescaped
_URI_SAFE = "-_.!~*'()"

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Month and day missing from a date string become 1
_DATE_DEFAULT = datetime(2000, 1, 1)

_registry: dict[str, Formatter] = {}


def _formatter(*names: str) -> Callable[[Formatter], Formatter]:
    def deco(fn: Formatter) -> Formatter:
        for name in names:
            _registry[name] = fn
        return fn
    return deco


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------

def _int_arg(args: list, pos: int = 0, default: Optional[int] = None) -> Optional[int]:
    """parseInt-style: leading integer of the argument, else `default`."""
    if len(args) <= pos:
        return default
    m = _LEADING_INT_RE.match(args[pos])
    return int(m.group(1)) if m else None


def random_string(length: int = DEFAULT_RAND_LENGTH) -> str:
    """Random alphanumeric string, length clamped to 1..32."""
    n = max(1, min(MAX_RAND_LENGTH, length))
    return "".join(random.choice(_RAND_ALPHABET) for _ in range(n))


def _truncate(text: str, limit: Optional[int]) -> str:
    if limit is None:
        return text
    return text[: max(0, limit)] if len(text) > limit else text


# ---------------------------------------------------------------------------
# Case
# ---------------------------------------------------------------------------

@_formatter("upper", "uppercase")
def _upper(value: Any, text: str, args: list) -> str:
    return text.upper()


@_formatter("lower", "lowercase")
def _lower(value: Any, text: str, args: list) -> str:
    return text.lower()


@_formatter("capitalize", "title")
def _capitalize(value: Any, text: str, args: list) -> str:
    return _WORD_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text)


@_formatter("sentence")
def _sentence(value: Any, text: str, args: list) -> str:
    return text[:1].upper() + text[1:]


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------

@_formatter("truncate")
def _truncate_fmt(value: Any, text: str, args: list) -> str:
    return _truncate(text, _int_arg(args, default=DEFAULT_TRUNCATE))


@_formatter("ellipsis")
def _ellipsis(value: Any, text: str, args: list) -> str:
    limit = _int_arg(args, default=DEFAULT_TRUNCATE)
    if limit is None or len(text) <= limit:
        return text
    return text[: max(0, limit)] + "..."


@_formatter("abbr")
def _abbr(value: Any, text: str, args: list) -> str:
    length = _int_arg(args, default=1)
    return text if length is None else text[: max(0, length)]


@_formatter("slice")
def _slice(value: Any, text: str, args: list) -> str:
    if not args:
        return text
    start = _int_arg(args, 0)
    end = _int_arg(args, 1)
    if start is None:
        start = 0
    if len(args) >= 2 and end is None:
        return ""
    return text[start:end]


@_formatter("pad")
def _pad(value: Any, text: str, args: list) -> str:
    width = _int_arg(args)
    if width is None:
        return text
    fill = args[1] if len(args) > 1 and args[1] else " "
    missing = width - len(text)
    if missing <= 0:
        return text
    return (fill * missing)[:missing] + text


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

@_formatter("replace")
def _replace(value: Any, text: str, args: list) -> str:
    if len(args) < 2:
        return text
    find, repl = args[0], args[1]
    try:
        return re.sub(find, lambda _m: repl, text)
    except re.error:
        return text.replace(find, repl)


@_formatter("trim")
def _trim(value: Any, text: str, args: list) -> str:
    return text.strip()


@_formatter("prefix")
def _prefix(value: Any, text: str, args: list) -> str:
    return args[0] + text if args else text


@_formatter("suffix")
def _suffix(value: Any, text: str, args: list) -> str:
    return text + args[0] if args else text


@_formatter("split")
def _split(value: Any, text: str, args: list) -> str:
    if not args:
        return text
    return ",".join(text.split(args[0] or ","))


@_formatter("join")
def _join(value: Any, text: str, args: list) -> str:
    if isinstance(value, SEQUENCE_TYPES):
        sep = (args[0] if args else "") or ","
        return sep.join(stringify(item) for item in value)
    return text


@_formatter("urlencode")
def _urlencode(value: Any, text: str, args: list) -> str:
    return quote(text, safe=_URI_SAFE)


@_formatter("urldecode")
def _urldecode(value: Any, text: str, args: list) -> str:
    return unquote(text)


# ---------------------------------------------------------------------------
# Numbers and structures
# ---------------------------------------------------------------------------

@_formatter("number")
def _number(value: Any, text: str, args: list) -> str:
    m = _LEADING_FLOAT_RE.match(text)
    if not m:
        return text
    num = float(m.group(1))
    precision = _int_arg(args)
    if precision is None:
        return format_number(num)
    return f"{num:.{max(0, min(100, precision))}f}"


@_formatter("json")
def _json(value: Any, text: str, args: list) -> str:
    return to_json(value)


@_formatter("count")
def _count(value: Any, text: str, args: list) -> str:
    return str(len(value)) if isinstance(value, SEQUENCE_TYPES) else "0"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise TypeError("boolean is not a date")
    if isinstance(value, (int, float)):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, Mapping) and value.get("date-parts"):
        parts = [int(p) for p in value["date-parts"][0]]
        year, month, day = (parts + [1, 1])[:3]
        return datetime(year, month or 1, day or 1)
    if isinstance(value, str) and value.strip():
        return dateutil_parser.parse(value, default=_DATE_DEFAULT)
    raise ValueError(f"not a date: {value!r}")


def _short_date(d: datetime) -> str:
    return f"{d.month}/{d.day}/{d.year}"


@_formatter("date")
def _date(value: Any, text: str, args: list) -> str:
    try:
        d = _parse_date(value)
    except (ValueError, TypeError, OverflowError, IndexError, dateutil_parser.ParserError):
        return text

    style = args[0] if args else ""
    if style == "iso":
        utc = d.replace(tzinfo=timezone.utc) if d.tzinfo is None else d.astimezone(timezone.utc)
        return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
    if style == "long":
        return f"{_WEEKDAYS[d.weekday()]}, {_MONTHS[d.month - 1]} {d.day}, {d.year}"
    if style == "year":
        return str(d.year)
    if style == "month":
        return str(d.month)
    if style == "day":
        return str(d.day)
    return _short_date(d)


# ---------------------------------------------------------------------------
# Citation helpers
# ---------------------------------------------------------------------------

@_formatter("titleword")
def _titleword(value: Any, text: str, args: list) -> str:
    return extract_title_words(text, 1)


@_formatter("shorttitle")
def _shorttitle(value: Any, text: str, args: list) -> str:
    return extract_title_words(text, 3)


@_formatter("rand")
def _rand(value: Any, text: str, args: list) -> str:
    length = _int_arg(args, default=DEFAULT_RAND_LENGTH)
    return random_string(DEFAULT_RAND_LENGTH if length is None else length)


FORMATTERS = MappingProxyType(_registry)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_spec(spec: str) -> tuple[str, list[str]]:
    """Split ``"pad:2:0"`` into ``("pad", ["2", "0"])``."""
    name, *args = spec.strip().split(":")
    return name, args


def apply(name: str, value: Any, args: Optional[list] = None) -> str:
    """
    Apply one formatter to `value` and return the result as a string.

    Names outside the table are matched against ``abbrN``, ``truncateN`` and
    ``randN``; anything else returns the value's string form.
    """
    args = list(args or [])
    text = stringify(value)

    fn = FORMATTERS.get(name)
    if fn is None:
        m = _NUMBERED_RE.match(name)
        if m is None or args:
            return text
        fn, args = FORMATTERS[m.group(1)], [m.group(2)]

    try:
        return fn(value, text, args)
    except Exception as exc:  # formatters must not break rendering
        _log.debug(f"Formatter {name!r} failed on {clip(text)!r}: {exc}")
        return text


def apply_chain(value: Any, specs: list[str]) -> str:
    """Run formatter specs left to right; later ones see the previous output."""
    result: Any = value
    for spec in specs:
        if not spec.strip():
            continue
        name, args = parse_spec(spec)
        result = apply(name, result, args)
    return stringify(result)
