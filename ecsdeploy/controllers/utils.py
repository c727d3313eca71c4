from collections.abc import Callable
from contextlib import contextmanager
from functools import wraps
import signal
import threading
import traceback
from typing import Iterator

import click

from ecsdeploy.exceptions import (
    DeploymentFailed,
    ECSDeployError,
    RollbackFailed,
)


# ========================
# Decorators
# ========================

def handle_deploy_exceptions(func: Callable) -> Callable:
    """
    This decorator catches all the kinds of exceptions we expect to see in normal
    operation, prints them and sets the app's exit code from the exception, while
    letting others display their stack traces normally.

    We use this decorator to wrap cement command methods on
    :py:class:`cement.ext.ext_argparse.ArgparseController` subclasses.
    """

    @wraps(func)
    def inner(self, *args, **kwargs):
        try:
            obj = func(self, *args, **kwargs)
        except RollbackFailed as e:
            click.secho('ROLLBACK FAILED: {}'.format(e), fg='red', bold=True, err=True)
            click.secho(
                'Service {} is still running {}; check it in the AWS console.'.format(e.service, e.attempted_arn),
                fg='red',
                err=True
            )
            self.app.exit_code = e.exit_code
        except DeploymentFailed as e:
            click.secho(str(e), fg='red', err=True)
            self.app.exit_code = e.exit_code
        except ECSDeployError as e:
            click.secho('{}: {}'.format(e.__class__.__name__, e), fg='red', err=True)
            self.app.exit_code = e.exit_code
            if self.app.debug is True:
                traceback.print_exc()
        else:
            return obj
        return None
    return inner


# ========================
# Context managers
# ========================

@contextmanager
def cancel_on_signals(cancel_event: threading.Event, signums=(signal.SIGINT, signal.SIGTERM)) -> Iterator[None]:
    """
    While inside this block, turn ``signums`` into ``cancel_event.set()`` so a
    deploy in progress can stop at a safe point (and roll back) instead of dying
    wherever the signal lands.  The previous handlers are restored on exit.
    """
    def handler(signum, frame):  # pylint: disable=unused-argument
        click.secho('\nCaught signal {}, cancelling deploy ...'.format(signum), fg='yellow', err=True)
        cancel_event.set()

    previous = {}
    for signum in signums:
        previous[signum] = signal.signal(signum, handler)
    try:
        yield
    finally:
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler)
