def on(event_name: str, priority: int = 0):
    """
    Mark a model method as a class-level listener for a lifecycle event.

        class Song(ActiveRecord):
            @on("created")
            def announce(self):
                ...
    """
    def decorator(fn):
        fn.__event_name__ = event_name
        fn.__event_priority__ = priority
        return fn
    return decorator


def table(table_name: str):
    """Map a model to `table_name` instead of its pluralized class name."""
    def decorator(cls):
        cls.__table__ = table_name
        cls.forget_schema()
        return cls
    return decorator
