import logging
import sys
import time
from contextlib import contextmanager

logger = logging.getLogger("orm.sql")
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
    logger.addHandler(handler)
logger.setLevel(logging.DEBUG)


@contextmanager
def query_logging(model_or_db):
    """
    Context manager that logs all statements executed inside its block.
    Accepts either an ActiveRecord model (class or instance) or a Database instance.
    """
    db = model_or_db.database() if hasattr(model_or_db, "database") else model_or_db
    # Wrappers from an enclosing block live on the instance and are put back on exit.
    shadowed = {name: vars(db)[name] for name in ("query", "execute") if name in vars(db)}
    original_query = db.query
    original_execute = db.execute

    def _timed(label, fn):
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            result = fn(*args, **kwargs)
            elapsed = (time.perf_counter() - start) * 1000
            sql, params = (args[0], args[1:]) if args else ("", ())
            logger.debug("[%s] %s\n[Params] %s\n[Took] %.2f ms", label, sql, params, elapsed)
            return result
        return wrapper

    db.query = _timed("SQL", original_query)
    db.execute = _timed("EXECUTE", original_execute)

    try:
        yield db
    finally:
        for name in ("query", "execute"):
            if name in shadowed:
                setattr(db, name, shadowed[name])
            else:
                delattr(db, name)
