import logging

logger = logging.getLogger("orm.model")


class Events:
    __event_listeners__ = {}

    @classmethod
    def on(cls, event_name: str, callback, priority: int = 0):
        """
        Register a class-level event listener for a specific event.

        Args:
            event_name (str): Name of the event (e.g., "created", "retrieved").
            callback (callable): Function to execute when the event is fired.
            priority (int, optional): Determines execution order. Higher runs first.
        """
        cls.__event_listeners__.setdefault(cls, {}).setdefault(event_name, [])

        # Prevent duplicate (priority, callback) pairs
        registered = cls.__event_listeners__[cls][event_name]
        if (priority, callback) not in registered:
            registered.append((priority, callback))
            registered.sort(key=lambda pair: pair[0], reverse=True)

    @classmethod
    def forget_listeners(cls):
        cls.__event_listeners__.pop(cls, None)

    def fire_event(self, event_name: str, instance=None):
        """
        Fire a lifecycle event, triggering both instance and class-level listeners.

        A failing listener is logged and does not stop the remaining ones.
        """
        target = instance or self

        # 1. Instance hook, e.g. instance.created()
        method = getattr(target, event_name, None)
        if callable(method):
            try:
                method()
            except Exception:
                logger.exception(f"Error in event '{event_name}' for {target.__class__.__name__}")

        # 2. Class-level listeners (including "__all__")
        registered = self.__class__.__event_listeners__.get(self.__class__, {})
        listeners = registered.get(event_name, []) + registered.get("__all__", [])

        for _, callback in listeners:
            try:
                callback(target)
            except Exception:
                logger.exception(f"Error in class-level event '{event_name}' for {target.__class__.__name__}")

    # ----------------------------------------------------------------------
    # Lifecycle Events
    # ----------------------------------------------------------------------

    def retrieved(self, *args, **kwargs):
        """
        Event triggered after a record is retrieved from the database.
        """
        pass

    def creating(self, *args, **kwargs):
        """
        Event triggered before a record is inserted.
        This can be used to modify the model before saving.
        """
        pass

    def created(self, *args, **kwargs):
        """
        Event triggered after a record is inserted and its identity assigned.
        """
        pass

    def updating(self, *args, **kwargs):
        pass

    def updated(self, *args, **kwargs):
        pass

    def saving(self, *args, **kwargs):
        """
        Event triggered before a record is saved (either created or updated).
        """
        pass

    def saved(self, *args, **kwargs):
        pass
