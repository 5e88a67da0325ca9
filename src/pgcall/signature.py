"""
Routine signature parsing.

A signature names a routine and its ordered parameter types:

    routine_name(type1, type2, ...)

Type tokens are case-insensitive and may contain several words
(`double precision`, `character varying(90)`). The last token may end with
a `...` marker, meaning the type repeats to match the number of arguments
actually supplied:

    vary(int...)        called with 3 args  ->  vary(int,int,int)
    concat_ws(text, text...)

Main entry points:
- `parse_signature(raw, nargs)` - Parse, normalize and expand a signature
- `untyped_signature(name, nargs)` - Signature for a call without declared types

Types containing a comma, e.g. `numeric(10,2)`, cannot be expressed and are
rejected with a ParseError.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto

from pgcall.exceptions import ParseError

logger = logging.getLogger(__name__)

VARIADIC_MARKER = '...'

_SIGNATURE = re.compile(r'^\s*(?P<name>[^\s(]+)\s*\((?P<types>.*)\)\s*$', re.DOTALL)
_BRACKET_SPACE = re.compile(r'\s*([()\[\]])\s*')
_WHITESPACE = re.compile(r'\s+')


class ParamKind(Enum):
    """How a positional argument is marshalled before binding."""
    SCALAR = auto()
    ARRAY = auto()


def param_kind(type_name: str) -> ParamKind:
    """Classify a normalized type token.
    """
    if '[' in type_name or type_name.endswith(' array'):
        return ParamKind.ARRAY
    return ParamKind.SCALAR


@dataclass(frozen=True, slots=True)
class Signature:
    """Parsed routine signature, expanded against an actual argument count."""
    raw: str
    name: str
    base_types: tuple[str, ...] | None
    variadic_type: str | None
    arg_types: tuple[str, ...] | None
    nargs: int

    @property
    def key(self) -> str:
        """Canonical cache key shared by all spellings of the same call.
        """
        if self.arg_types is None:
            return f'untyped:{self.name}/{self.nargs}'
        return f"{self.name}({','.join(self.arg_types)})/{self.nargs}"

    @property
    def column_name(self) -> str:
        """Column name the engine gives a scalar result of this routine.
        """
        return self.name.rsplit('.', 1)[-1].strip('"')

    @property
    def is_typed(self) -> bool:
        return self.arg_types is not None

    @property
    def param_kinds(self) -> tuple[ParamKind, ...]:
        return tuple(param_kind(t) for t in self.arg_types or ())

    def __str__(self) -> str:
        return self.raw


def normalize_name(name: str) -> str:
    """Fold unquoted identifiers to lower case, as PostgreSQL does.
    """
    if '"' in name:
        return name
    return name.lower()


def normalize_type(token: str) -> str:
    """Normalize one type token.

    Lower-cases, drops whitespace around brackets and collapses internal
    whitespace runs to a single space.

    >>> normalize_type('  Character   VARYING ( 90 ) ')
    'character varying(90)'
    >>> normalize_type('INT [ ]')
    'int[]'
    """
    token = _BRACKET_SPACE.sub(r'\1', token.lower())
    return _WHITESPACE.sub(' ', token).strip()


def _split_types(raw: str, type_list: str) -> list[str]:
    """Split the parameter list on commas and normalize each token."""
    if not type_list.strip():
        return []

    tokens = [normalize_type(t) for t in type_list.split(',')]
    for token in tokens:
        if not token:
            raise ParseError(f"Can't parse '{raw}': empty type in parameter list")
        if token.count('(') != token.count(')'):
            raise ParseError(f"Can't parse '{raw}': types containing commas are not supported")
    return tokens


def expand_types(raw: str, base_types: tuple[str, ...], variadic_type: str | None,
                 nargs: int) -> tuple[str, ...]:
    """Expand declared types against the actual argument count.
    """
    if variadic_type is None:
        if nargs != len(base_types):
            raise ParseError(f"expected {len(base_types)} arguments for '{raw}', got {nargs}")
        return base_types

    if nargs < len(base_types):
        raise ParseError(f"expected at least {len(base_types)} arguments for '{raw}', got {nargs}")
    return base_types + (variadic_type,) * (nargs - len(base_types))


def parse_signature(raw: str, nargs: int) -> Signature:
    """Parse a raw signature for a call supplying `nargs` arguments.

    Parameters
        raw: Signature text, e.g. 'generate_series(int, int)'
        nargs: Number of arguments supplied by the caller

    Returns
        Signature with variadic types expanded

    Raises
        ParseError: If the text is malformed or the argument count does not
            match the declared parameters
    """
    match = _SIGNATURE.match(raw)
    if match is None:
        raise ParseError(f"Can't parse '{raw}'")

    name = normalize_name(match.group('name'))
    tokens = _split_types(raw, match.group('types'))

    variadic_type = None
    if tokens and tokens[-1].endswith(VARIADIC_MARKER):
        variadic_type = tokens.pop()[:-len(VARIADIC_MARKER)].rstrip()
        if not variadic_type:
            raise ParseError(f"Can't parse '{raw}': variadic marker without a type")
    if any(t.endswith(VARIADIC_MARKER) for t in tokens):
        raise ParseError(f"Can't parse '{raw}': only the last type may be variadic")

    base_types = tuple(tokens)
    arg_types = expand_types(raw, base_types, variadic_type, nargs)

    signature = Signature(raw=raw, name=name, base_types=base_types,
                          variadic_type=variadic_type, arg_types=arg_types,
                          nargs=nargs)
    logger.debug(f'Parsed call({raw}) => {signature.key}')
    return signature


def untyped_signature(name: str, nargs: int) -> Signature:
    """Signature for a call whose parameter types are left to the engine.
    """
    if not name or not name.strip() or any(c in name for c in '() \t\n'):
        raise ParseError(f"Can't parse routine name '{name}'")
    return Signature(raw=name, name=normalize_name(name), base_types=None,
                     variadic_type=None, arg_types=None, nargs=nargs)
