#!/usr/bin/env python3

"""\
Small helpers shared by the command-line scripts.
"""

import sys
from contextlib import contextmanager

def print_error(message, *args, **kwargs):
    if args or kwargs:
        message = message.format(*args, **kwargs)
    sys.stderr.write(message + '\n')
    sys.stderr.flush()

def print_error_and_die(message, *args, **kwargs):
    print_error(message + "  Aborting...", *args, **kwargs)
    raise SystemExit(1)

@contextmanager
def catch_and_print_errors():
    """
    Print expected errors (i.e. those with a `no_stack_trace` attribute) as a
    plain message and exit with a non-zero status.  Anything else is a bug,
    and is allowed to raise with a full traceback.  Can also be used as a
    decorator.
    """
    try:
        yield

    except KeyboardInterrupt:
        print()
        raise SystemExit(130)

    except Exception as error:
        if getattr(error, 'no_stack_trace', False):
            print_error("[ERROR] {0}", error)
            raise SystemExit(1)
        raise
