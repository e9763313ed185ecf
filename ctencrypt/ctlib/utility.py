import json
import logging
import time

from datetime import datetime
from decimal import Decimal


def jsonEncoder(obj):
    if isinstance(obj, datetime):
        return obj.strftime("%c")
    elif isinstance(obj, Decimal):
        return int(obj)
    else:
        return None


def jsonDumps(obj, **kwargs):
    """ :return: pretty formatted dict with auto conversion for datetime, Decimal, etc """
    return json.dumps(obj, indent=4, default=jsonEncoder, **kwargs)


def timeit(method):
    def timed(*args, **kw):
        start = time.perf_counter()
        result = method(*args, **kw)
        end = time.perf_counter()
        duration = (end - start)
        logging.getLogger("ctlib").debug(f"'{method.__name__}{params_to_str(*args, **kw)}' duration '{duration:.2f}'")
        return result
    return timed


def params_to_str(*args, **kw):
    params = ", ".join([str(arg) for arg in args])
    for k, v in kw.items():
        if params:
            params += ", "
        params += f"{k}={v}"
    return f"({params})"
