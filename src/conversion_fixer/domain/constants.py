"""Diagnostic ids, fix titles and type tables shared across layers."""

# The one diagnostic class this tool registers fixes against.
DIAGNOSTIC_ID: str = "incompatible-types"
FIX_TITLE: str = "Generate explicit conversion"

# Mypy error codes reported for invalid implicit conversions.
DEFAULT_MYPY_CODES: list[str] = ["assignment", "return-value", "misc"]
# "misc" is only an incompatible conversion when it carries this message.
MYPY_YIELD_MESSAGE_PREFIX: str = 'Incompatible types in "yield"'

BUILTIN_SCALARS: frozenset[str] = frozenset(
    {
        "builtins.int",
        "builtins.float",
        "builtins.complex",
        "builtins.str",
        "builtins.bytes",
        "builtins.bool",
    }
)

BUILTIN_COLLECTIONS: frozenset[str] = frozenset(
    {
        "builtins.list",
        "builtins.tuple",
        "builtins.set",
        "builtins.frozenset",
        "builtins.dict",
    }
)

# typing aliases that resolve to a builtin collection
TYPING_COLLECTION_MAP: dict[str, str] = {
    "typing.List": "builtins.list",
    "typing.Tuple": "builtins.tuple",
    "typing.Set": "builtins.set",
    "typing.FrozenSet": "builtins.frozenset",
    "typing.Dict": "builtins.dict",
}

# Return annotations whose first parameter is the yielded element type (last name segment)
GENERATOR_ANNOTATIONS: frozenset[str] = frozenset(
    {"Generator", "Iterator", "Iterable", "AsyncGenerator", "AsyncIterator", "AsyncIterable"}
)

# Preferred name of the temporary bound when a non-trivial source expression is
# read more than once; emitters add a numeric suffix when it is taken.
SOURCE_TEMP_NAME: str = "source"
