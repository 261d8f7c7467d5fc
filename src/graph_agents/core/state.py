"""State container for step graphs.

A state is a plain dict described by a ``TypedDict``. Reducers are declared
with ``Annotated``, where ``langgraph.graph.StateGraph`` reads them, so one
declaration drives both the compiled graph and :meth:`StateSchema.merge`::

    class CounterState(TypedDict):
        log: Annotated[List[str], append]
        count: int                       # replace-if-present

LangGraph state fields have no defaults, so every field also gets a default
factory here and each run starts from :meth:`StateSchema.initial`.

A key missing from an update (or set to ``UNSET``) leaves the field
untouched; a key set to ``None`` goes through the field's reducer.
"""

from typing import Annotated, Any, Callable, Dict, Mapping, Optional, get_args, get_origin, get_type_hints

from .errors import SchemaError

Reducer = Callable[[Any, Any], Any]


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


# --- Reduction policies ---

def replace(old: Any, new: Any) -> Any:
    """Take the new value, including an explicit ``None``."""
    return new


def coalesce(old: Any, new: Any) -> Any:
    """Take the new value unless it is ``None``."""
    return old if new is None else new


def append(old: Any, new: Any) -> list:
    """Concatenate sequences into a new list."""
    return list(old or []) + list(new or [])


def shallow_merge(old: Any, new: Any) -> dict:
    """Overlay the keys of ``new`` onto a copy of ``old``."""
    return {**(old or {}), **(new or {})}


def replace_if_nonempty(old: Any, new: Any) -> Any:
    """Take the new value only when it has at least one element."""
    return new if new else old


def _reducer_for(hint: Any) -> Reducer:
    # Same lookup as LangGraph: the last callable in the Annotated metadata
    if get_origin(hint) is Annotated:
        metadata = get_args(hint)[1:]
        if metadata and callable(metadata[-1]):
            return metadata[-1]
    return replace


class StateSchema:
    """A ``TypedDict`` state type with a default factory for every field."""

    def __init__(
        self,
        state_type: type,
        defaults: Mapping[str, Callable[[], Any]],
        reducers: Mapping[str, Reducer],
    ):
        self.state_type = state_type
        self.name = state_type.__name__
        self.defaults: Dict[str, Callable[[], Any]] = dict(defaults)
        self.reducers: Dict[str, Reducer] = dict(reducers)

    @classmethod
    def from_typed_dict(
        cls,
        state_type: type,
        defaults: Mapping[str, Callable[[], Any]],
    ) -> "StateSchema":
        """Read fields and reducers from ``state_type``; every field needs a default."""
        hints = get_type_hints(state_type, include_extras=True)
        missing = sorted(set(hints) - set(defaults))
        if missing:
            raise SchemaError(f"{state_type.__name__}: no default factory for {', '.join(missing)}")
        unknown = sorted(set(defaults) - set(hints))
        if unknown:
            raise SchemaError(f"{state_type.__name__}: defaults given for undeclared fields {', '.join(unknown)}")

        reducers = {field_name: _reducer_for(hint) for field_name, hint in hints.items()}
        return cls(state_type, {field_name: defaults[field_name] for field_name in hints}, reducers)

    @property
    def fields(self):
        return tuple(self.reducers)

    def initial(self) -> Dict[str, Any]:
        """A fresh state built from every field's default factory."""
        return {name: factory() for name, factory in self.defaults.items()}

    def validate_update(self, update: Mapping[str, Any]) -> None:
        undeclared = [key for key in update if key not in self.reducers]
        if undeclared:
            raise SchemaError(f"{self.name}: update references undeclared field(s) {', '.join(map(str, undeclared))}")

    def merge(self, state: Mapping[str, Any], update: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Return a new state with ``update`` folded in through each field's reducer."""
        if update is None:
            return dict(state)
        if not isinstance(update, Mapping):
            raise SchemaError(f"{self.name}: expected a mapping update, got {type(update).__name__}")
        self.validate_update(update)

        merged = dict(state)
        for name, value in update.items():
            if value is UNSET:
                continue
            current = merged[name] if name in merged else self.defaults[name]()
            merged[name] = self.reducers[name](current, value)
        return merged
