import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, NamedTuple, Optional, Sequence

from dynarecord.database.Exceptions import UnknownPropertyError

logger = logging.getLogger("orm.model")


class Accessor(NamedTuple):
    name: str
    get: Callable[[Any], Any]
    set: Callable[[Any, Any], None]


def make_accessor(name: str) -> Accessor:
    def getter(instance):
        return instance.__data__.get(name)

    def setter(instance, value):
        instance.__data__[name] = value

    return Accessor(name, getter, setter)


class ColumnProperty(property):
    """A property generated from an introspected column."""

    def __init__(self, accessor: Accessor):
        super().__init__(accessor.get, accessor.set, doc=f"Column `{accessor.name}`")
        self.column = accessor.name


@dataclass
class ModelDescriptor:
    """
    A mapped class paired with its table and its columns.

    `column_names` is the ordered result of introspection and includes the
    identity column. `schema_version` is the engine's schema counter at the
    time of introspection.
    """
    model: type
    table_name: str
    column_names: list[str]
    primary_key: str = "id"
    schema_version: Any = None
    accessors: dict[str, Accessor] = field(default_factory=dict, repr=False)

    @property
    def model_name(self) -> str:
        return self.model.__name__

    @property
    def insertable_columns(self) -> list[str]:
        return [column for column in self.column_names if column != self.primary_key]

    def has_property(self, name: Any) -> bool:
        try:
            return name in self.accessors
        except TypeError:
            return False

    def accessor(self, name: Any) -> Accessor:
        try:
            return self.accessors[name]
        except (KeyError, TypeError):
            raise UnknownPropertyError(self.model_name, name) from None

    def check(self, properties: Mapping[str, Any]) -> None:
        for key in properties:
            if not self.has_property(key):
                raise UnknownPropertyError(self.model_name, key)

    def to_properties(self, row: Mapping[str, Any] | Sequence[Any]) -> dict[str, Any]:
        """Convert a raw storage row into a column name -> value mapping."""
        if isinstance(row, Mapping):
            return dict(row)
        if len(row) != len(self.column_names):
            raise ValueError(
                f"Row has {len(row)} cells but `{self.table_name}` has {len(self.column_names)} columns"
            )
        return dict(zip(self.column_names, row))


def install_accessors(descriptor: ModelDescriptor) -> ModelDescriptor:
    """
    Register a getter/setter pair for every column and expose each one as a
    property of the mapped class. Running it again for the same columns is harmless.
    """
    model = descriptor.model
    descriptor.accessors = {}

    # Columns dropped since the last introspection.
    for attr, value in list(vars(model).items()):
        if isinstance(value, ColumnProperty) and value.column not in descriptor.column_names:
            delattr(model, attr)

    for name in descriptor.column_names:
        accessor = make_accessor(name)
        descriptor.accessors[name] = accessor

        existing = getattr(model, name, None)
        if existing is not None and not isinstance(existing, ColumnProperty):
            logger.warning(
                f"Column `{descriptor.table_name}.{name}` collides with {model.__name__}.{name}; "
                f"use instance['{name}'] to reach it"
            )
            continue
        setattr(model, name, ColumnProperty(accessor))

    logger.debug(f"Installed {len(descriptor.accessors)} accessor(s) on {model.__name__}")
    return descriptor


def construct(descriptor: ModelDescriptor, properties: Optional[Mapping[str, Any]] = None):
    """
    Build a new instance of the mapped class from a property mapping.

    Every key is validated before the instance exists; unsupplied properties are None.
    """
    properties = dict(properties or {})
    descriptor.check(properties)

    instance = descriptor.model.__new__(descriptor.model)
    populate(descriptor, instance, properties)
    return instance


def populate(descriptor: ModelDescriptor, instance, properties: Mapping[str, Any]) -> None:
    instance.__data__ = dict.fromkeys(descriptor.column_names)
    for key, value in properties.items():
        descriptor.accessors[key].set(instance, value)
