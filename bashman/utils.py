"""
Bashman utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the model, the synthesizers and the resolver.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the interface/graph/credits layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent "value not provided" without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with
    fresh copies for containers so model state cannot be mutated through the API.

- oxford(items, conjunction)
  • Human list joining: "a", "a and b", "a, b, and c".

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> oxford(["Ann", "Bob", "Cy"], "and")
    'Ann, Bob, and Cy'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate user value but the API needs to tell
    "not provided" apart from "provided as None". A single instance, Unset,
    is exposed for use as the default in keyword parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when Unset appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or () are preserved as-is; only Unset is
    replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Raises
    - TypeError: wrong arity, non-callable target, non-string name, or a
      callable whose names cannot be updated (e.g., built-ins).
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values.

    Behavior
    - Sequence (non-string): a new tuple with each element processed.
    - Mapping: a new dict, keys preserved, values processed.
    - Set: a new frozenset with each element processed.
    - Anything else: returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and hands out
    immutable copies of containers (tuples, frozensets), so a model object
    stays as it was validated.

    Parameters
    - name: str
      The public property name and the suffix of the backing field "_{name}".
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def oxford(items, conjunction, /):
    """
    Join items the way English lists are written.

    Parameters
    - items: Iterable[str]
      Entries to join; order is preserved.
    - conjunction: str
      Usually "and" or "or".

    Returns
    - str: "" for no items, "a" for one, "a and b" for two, and
      "a, b, and c" (serial comma) for three or more.
    """
    if not isinstance(conjunction, str):
        raise TypeError("oxford() conjunction must be a string")
    match items := list(items):
        case []:
            return ""
        case [only]:
            return only
        case [first, second]:
            return f"{first} {conjunction} {second}"
        case [*head, last]:
            return f"{", ".join(head)}, {conjunction} {last}"


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Default for keyword parameters where None is meaningful; materialize with
coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "oxford",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
