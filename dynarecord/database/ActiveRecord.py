import logging
from typing import Any, Optional, Self, Type, TypeVar

from dynarecord.core_services.Database import Database
from dynarecord.database.Events import Events
from dynarecord.database.Exceptions import (
    DatabaseNotBound,
    RecordNotFound,
    TableNotFound,
    UnknownPropertyError,
)
from dynarecord.database.ModelDescriptor import ModelDescriptor, construct, install_accessors, populate
from dynarecord.database.Naming import table_name_for
from dynarecord.database.QueryBuilder import QueryBuilder
from dynarecord.database.active_record.utils.ModelCollection import ModelCollection
from dynarecord.database.active_record.utils.Schema import column_names_for, get_table_fields, primary_key_for

logger = logging.getLogger("orm.model")

T = TypeVar("T", bound="ActiveRecord")


class ActiveRecordMeta(type):
    __models__: dict[str, type] = {}

    def __init__(cls, name, bases, attrs):
        super().__init__(name, bases, attrs)

        # Handle any @on(...) decorated functions
        for attr_name, attr_value in attrs.items():
            if hasattr(attr_value, "__event_name__"):
                event = attr_value.__event_name__
                priority = getattr(attr_value, "__event_priority__", 0)
                cls.on(event, attr_value, priority)

        if not attrs.get("__abstract__", False):
            existing = ActiveRecordMeta.__models__.get(name)
            if existing is not None and existing is not cls:
                logger.warning(
                    f"Model name {name} re-registered: {existing.__module__}.{existing.__qualname__} "
                    f"is replaced by {cls.__module__}.{cls.__qualname__}"
                )
            ActiveRecordMeta.__models__[name] = cls

    def __getattr__(cls, key):
        """
        Dynamic finders: Song.find_by_name("Hello") -> Song.find_by("name", "Hello")
        """
        if key.startswith("find_by_") and len(key) > len("find_by_"):
            column = key[len("find_by_"):]

            def dynamic_find_by(value):
                return cls.find_by(column, value)

            return dynamic_find_by

        raise AttributeError(f"type object '{cls.__name__}' has no attribute '{key}'")


class ActiveRecord(Events, metaclass=ActiveRecordMeta):
    """
    Base class for models whose columns are discovered from the database.

        class Song(ActiveRecord):
            pass

        ActiveRecord.bind(Sqlite3Database("music.db"))
        song = Song(name="Hello", album="25")
        song.save()
        Song.find_by("name", "Hello")
    """
    __table__: str = None
    __primary_key__: str = None
    __database__: Database = None
    __abstract__: bool = True

    def __init__(self, **properties: Any):
        descriptor = self.describe()
        descriptor.check(properties)
        populate(descriptor, self, properties)

    def __getitem__(self, key: str) -> Any:
        return self.describe().accessor(key).get(self)

    def __setitem__(self, key: str, value: Any) -> None:
        self.describe().accessor(key).set(self, value)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.__data__.items())
        return f"<{self.__class__.__name__} {fields}>"

    # --------------------------------------------------------------------------
    # Database binding
    # --------------------------------------------------------------------------

    @classmethod
    def bind(cls, db: Database) -> None:
        """
        Attach a storage handle to this class and every model below it.
        Cached schemas are dropped, so the next use introspects `db`.
        """
        cls.__database__ = db
        for model in list(ActiveRecordMeta.__models__.values()):
            if issubclass(model, cls):
                model.forget_schema()
        cls.forget_schema()

    @classmethod
    def database(cls) -> Database:
        db = cls.__database__
        if db is None:
            raise DatabaseNotBound(cls.__name__)
        return db

    @staticmethod
    def model_for(class_identifier) -> Type["ActiveRecord"]:
        """
        Resolve a model class from a class or a class name.
        Unknown names get a new mapped class on the fly.
        """
        if isinstance(class_identifier, type):
            if not issubclass(class_identifier, ActiveRecord):
                raise TypeError(f"{class_identifier.__name__} is not an ActiveRecord model")
            return class_identifier

        name = str(class_identifier)
        model = ActiveRecordMeta.__models__.get(name)
        if model is None:
            logger.debug(f"Mapping {name} on the fly")
            model = ActiveRecordMeta(name, (ActiveRecord,), {"__module__": __name__})
        return model

    # --------------------------------------------------------------------------
    # Schema Introspection
    # --------------------------------------------------------------------------

    @classmethod
    def get_table(cls) -> str:
        return cls.__dict__.get("__table__") or table_name_for(cls)

    @classmethod
    def get_primary_key_column(cls) -> str:
        return cls.describe().primary_key

    @classmethod
    def describe(cls) -> ModelDescriptor:
        """
        The cached descriptor, introspected again whenever the database reports
        a schema change since it was built.
        """
        descriptor = cls.__dict__.get("__descriptor__")
        if descriptor is None or descriptor.schema_version != cls.database().schema_version():
            descriptor = cls.refresh_schema()
        return descriptor

    @classmethod
    def refresh_schema(cls) -> ModelDescriptor:
        """
        Introspect the table again and reinstall the accessors.
        """
        if cls.__dict__.get("__abstract__", False):
            raise TypeError(f"{cls.__name__} is abstract and is not mapped to a table")

        db = cls.database()
        schema_version = db.schema_version()
        table_name = cls.get_table()
        fields = get_table_fields(db, table_name)
        column_names = column_names_for(db, table_name, fields)
        if not column_names:
            raise TableNotFound(table_name, cls.__name__)

        primary_key = getattr(cls, "__primary_key__", None) or primary_key_for(fields) or "id"
        if primary_key not in column_names:
            raise UnknownPropertyError(cls.__name__, primary_key)

        logger.debug(f"Mapped {cls.__name__} to `{table_name}` ({', '.join(column_names)})")
        descriptor = install_accessors(ModelDescriptor(cls, table_name, column_names, primary_key, schema_version))
        cls.__descriptor__ = descriptor
        return descriptor

    @classmethod
    def forget_schema(cls) -> None:
        descriptor = cls.__dict__.get("__descriptor__")
        if descriptor is not None:
            cls.__descriptor__ = None

    @classmethod
    def column_names(cls) -> list[str]:
        return list(cls.describe().column_names)

    # --------------------------------------------------------------------------
    # Basic Model Information
    # --------------------------------------------------------------------------

    def is_persisted(self) -> bool:
        return self[self.get_primary_key_column()] is not None

    def to_dict(self) -> dict[str, Any]:
        return {column: self.__data__.get(column) for column in self.describe().column_names}

    # --------------------------------------------------------------------------
    # Hydration
    # --------------------------------------------------------------------------

    @classmethod
    def _hydrate_results(cls: Type[T], rows: list[dict]) -> ModelCollection[T]:
        descriptor = cls.describe()
        results = ModelCollection()
        for row in rows:
            instance = construct(descriptor, descriptor.to_properties(row))
            instance.fire_event("retrieved")
            results.append(instance)
        return results

    # --------------------------------------------------------------------------
    # Retrieval
    # --------------------------------------------------------------------------

    @classmethod
    def find_by(cls: Type[T], key: str, value: Any) -> ModelCollection[T]:
        """
        All records whose `key` column equals `value`.
        """
        return find_by(cls, key, value)

    @classmethod
    def find(cls: Type[T], id_: Any) -> Optional[T]:
        """
        Find a single record by its primary key.
        """
        return cls.find_by(cls.get_primary_key_column(), id_).first()

    @classmethod
    def find_strict(cls: Type[T], id_: Any) -> T:
        """
        Like find(), but raises if no record is found.
        """
        record = cls.find(id_)
        if record is None:
            raise RecordNotFound(f"No {cls.__name__} with {cls.get_primary_key_column()}={id_!r}")
        return record

    @classmethod
    def all(cls: Type[T]) -> ModelCollection[T]:
        descriptor = cls.describe()
        query = QueryBuilder().table(descriptor.table_name).order_by(descriptor.primary_key)
        return cls._hydrate_results(cls.database().query(query))

    # --------------------------------------------------------------------------
    # Persistence
    # --------------------------------------------------------------------------

    @classmethod
    def create(cls: Type[T], **properties: Any) -> T:
        """
        Create a new model instance with the given properties and save it to the database.
        """
        instance = cls(**properties)
        instance.save()
        return instance

    def save(self) -> Any:
        """
        Insert the record, or update it when it already has an identity.
        Returns the identity.
        """
        return save(self)

    def fill(self, **properties: Any) -> Self:
        descriptor = self.describe()
        descriptor.check(properties)
        for key, value in properties.items():
            descriptor.accessors[key].set(self, value)
        return self


def save(instance: ActiveRecord) -> Any:
    """
    Persist `instance`.

    A transient instance (identity None) is inserted with every non-identity
    column, NULLs included, and receives the identity generated by the
    engine. A persisted instance is updated in place. On failure the
    instance is left as it was.
    """
    descriptor = instance.describe()
    db = instance.database()
    identity = descriptor.accessor(descriptor.primary_key)
    columns = descriptor.insertable_columns
    query = QueryBuilder().table(descriptor.table_name)

    persisted = identity.get(instance) is not None
    instance.fire_event("saving")
    instance.fire_event("updating" if persisted else "creating")

    values = [descriptor.accessors[column].get(instance) for column in columns]

    if persisted:
        pk_value = identity.get(instance)
        query.where(descriptor.primary_key, "=", pk_value)
        if columns:
            sql, params = query.update(dict(zip(columns, values)))
            matched = db.execute(sql, params).rowcount
        else:
            # Nothing to write; the row must still exist.
            matched = len(db.query(query.select(descriptor.primary_key).limit(1)))
        if matched != 1:
            raise RecordNotFound(
                f"No {descriptor.table_name} row with {descriptor.primary_key}={pk_value!r} to update"
            )
        instance.fire_event("updated")
    else:
        sql, params = query.insert(columns, values)
        db.execute(sql, params)
        identity.set(instance, db.last_insert_id())
        instance.fire_event("created")

    instance.fire_event("saved")
    return identity.get(instance)


def find_by(class_identifier, property_name: str, value: Any) -> ModelCollection:
    """
    Records of `class_identifier` whose `property_name` equals `value`.

    `property_name` must be one of the introspected columns; it is checked
    before any SQL is built. No match gives an empty collection.
    """
    model = ActiveRecord.model_for(class_identifier)
    descriptor = model.describe()
    if not descriptor.has_property(property_name):
        raise UnknownPropertyError(descriptor.model_name, property_name)

    query = (
        QueryBuilder()
        .table(descriptor.table_name)
        .where(property_name, "=", value)
        .order_by(descriptor.primary_key)
    )
    return model._hydrate_results(model.database().query(query))
