import logging
import math
import threading
import time
from typing import Any, Callable, List, Optional

from ecsdeploy.config import DEFAULT_POLL_INTERVAL
from ecsdeploy.core.models import Service


logger = logging.getLogger(__name__)

#: The service still has more than one deployment
DEPLOYING = 'DEPLOYING'
#: The service is down to a single deployment: terminal, success
STABLE = 'STABLE'
#: We ran out of polls before the service stabilized: terminal, failure
TIMED_OUT = 'TIMED_OUT'
#: Someone asked us to stop: terminal, failure
CANCELLED = 'CANCELLED'


def max_tries(timeout: int, poll_interval: int = DEFAULT_POLL_INTERVAL) -> int:
    """
    Return the number of ``poll_interval`` second sleeps needed to cover
    ``timeout`` seconds, rounding up so we never wait less than ``timeout``.
    """
    return int(math.ceil(timeout / poll_interval))


class StabilizationWatcher:
    """
    A StabilizationWatcher polls an ECS service until it has only one deployment
    left (``STABLE``), or until we've polled ``max_tries + 1`` times without seeing
    that (``TIMED_OUT``).  Between polls we sleep exactly ``poll_interval`` seconds,
    so the most time we spend sleeping is ``max_tries * poll_interval``.

    You can give it a list of callables that will be executed on each poll.  This
    is useful for giving the user feedback while we're waiting.  Hooks should have
    this prototype:

        waiter_hook(state, service, num_attempts, **kwargs)

    Where:

    args:
        * 'state': the watcher state after this poll.  One of ``DEPLOYING``, ``STABLE``,
          ``TIMED_OUT`` or ``CANCELLED``.
        * 'service': the :py:class:`ecsdeploy.core.models.Service` from this poll, or ``None``
          if we were cancelled before polling
        * 'num_attempts': the current poll number

    kwargs:

        * 'name': the primary key of the service we're watching
        * 'MaxAttempts': how many polls we'll perform before timing out
        * 'Delay': the sleep amount in seconds

    ``cancel_event`` is checked before every poll; once it is set we stop in
    ``CANCELLED``.  The default sleep waits on ``cancel_event``, so setting it also
    cuts the current sleep short.  ``sleep`` and ``clock`` can be replaced for testing.
    """

    def __init__(
        self,
        pk: str,
        timeout: int,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        hooks: Optional[List[Callable]] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> None:
        self.pk = pk
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_tries = max_tries(timeout, poll_interval)
        self.hooks = hooks if hooks else []
        self.cancel_event = cancel_event if cancel_event else threading.Event()
        self.sleep = sleep if sleep else self.cancel_event.wait
        self.clock = clock if clock else time.monotonic
        self.state = DEPLOYING
        self.num_attempts = 0
        self.elapsed: float = 0.0

    @property
    def max_attempts(self) -> int:
        return self.max_tries + 1

    def poll(self) -> Service:
        return Service.objects.get(self.pk)

    def transition(self, service: Service) -> str:
        if service.is_stable:
            return STABLE
        if self.num_attempts >= self.max_attempts:
            return TIMED_OUT
        return DEPLOYING

    def run_hooks(self, service: Optional[Service]) -> None:
        hook_kwargs = {
            'name': self.pk,
            'MaxAttempts': self.max_attempts,
            'Delay': self.poll_interval,
        }
        for hook in self.hooks:
            hook(self.state, service, self.num_attempts, **hook_kwargs)

    def wait(self) -> str:
        """
        Poll until we reach a terminal state, and return that state.
        """
        start = self.clock()
        while True:
            if self.cancel_event.is_set():
                self.state = CANCELLED
                self.run_hooks(None)
                break
            service = self.poll()
            self.num_attempts += 1
            self.state = self.transition(service)
            logger.debug(
                'poll %d/%d of %s: %d deployments, state=%s',
                self.num_attempts, self.max_attempts, self.pk, len(service.deployments), self.state
            )
            self.run_hooks(service)
            if self.state != DEPLOYING:
                break
            self.sleep(self.poll_interval)
        self.elapsed = self.clock() - start
        return self.state
