import functools
import inspect
import json
import logging
import pathlib
import time

LOG = logging.getLogger("sensors")


def sensor(tag: str):
    """Log one ``SENSOR:`` line per call with duration and outcome.

    A call counts as failed when it raises or when it returns an object whose
    ``ok`` attribute is false, which is how the feed pipeline reports errors.
    """

    def decorate(fn):
        @functools.wraps(fn)
        def wrapper(*a, **kw):
            t0 = time.perf_counter()
            ok = True
            state = None
            try:
                result = fn(*a, **kw)
                ok = bool(getattr(result, "ok", True))
                state = getattr(result, "state", None)
                return result
            except Exception:
                ok = False
                raise
            finally:
                payload = {
                    "tag": tag,
                    "fn": fn.__name__,
                    "file": pathlib.Path(inspect.getfile(fn)).name,
                    "ok": ok,
                    "state": getattr(state, "value", state),
                    "dt_ms": round((time.perf_counter() - t0) * 1000, 2),
                }
                LOG.info("SENSOR: %s", json.dumps(payload))

        return wrapper

    return decorate
