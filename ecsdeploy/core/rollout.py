"""
Rolling deploys of single container ECS services.

A deploy happens in three steps:

* :py:class:`DeploymentIssuer` copies the task definition the service is running now,
  swaps in the new image (and patch), registers that as a new revision and points
  the service at it.
* :py:class:`ecsdeploy.core.waiters.StabilizationWatcher` polls the service until ECS
  has drained the old deployment, or until we run out of time.
* If we ran out of time, or polling failed, :py:class:`RollbackCoordinator` points the
  service back at the old revision and tells Slack about it.

:py:class:`RollingDeployment` runs all three for one :py:class:`ecsdeploy.config.DeploymentConfig`.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, NamedTuple, NoReturn, Optional, Tuple

from ecsdeploy.config import DeploymentConfig
from ecsdeploy.exceptions import (
    APIFailure,
    DeploymentCancelled,
    DeploymentFailed,
    RollbackFailed,
    TransportError,
)

from .models import Service, TaskDefinition
from .notifications import SlackNotifier, rollback_message
from .waiters import CANCELLED, STABLE, TIMED_OUT, StabilizationWatcher


logger = logging.getLogger(__name__)

#: We lost track of the service while waiting for it to stabilize
FAILED = 'FAILED'


def service_name(pk: str) -> str:
    return pk.split(':', 1)[1]


class DeploymentResult(NamedTuple):

    service: str
    old_arn: str
    new_arn: str
    state: str
    num_attempts: int
    elapsed: float


class DeploymentIssuer:
    """
    Register a new revision of a service's task definition and point the
    service at it.  Nothing is changed on the service unless every step before
    the ``update_service`` call succeeds.
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None) -> None:
        self.cancel_event = cancel_event if cancel_event else threading.Event()

    def check_cancelled(self, pk: str, new_arn: Optional[str] = None) -> None:
        if self.cancel_event.is_set():
            raise DeploymentCancelled(service_name(pk), attempted_arn=new_arn)

    def deploy(self, pk: str, image: str, patch: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
        """
        :param pk str: a string like "{cluster_name}:{service_name}"
        :param image str: the image our container should run
        :param patch dict: container definition keys to override

        :rtype: tuple(str, str): the old and new task definition ARNs
        """
        service = Service.objects.get(pk)
        old_arn = service.task_definition_arn
        logger.info('Old task definition ARN: %s', old_arn)
        old_task_definition = TaskDefinition.objects.get(old_arn)
        new_task_definition = old_task_definition.mutate(patch, image)
        logger.info(
            'Task definition changes: %s',
            new_task_definition.diff(old_task_definition).get('$update', {})
        )
        self.check_cancelled(pk)
        new_arn = new_task_definition.save().arn
        logger.info('New task definition ARN: %s', new_arn)
        self.check_cancelled(pk, new_arn)
        Service.objects.update_task_definition(pk, new_arn)
        return old_arn, new_arn


class RollbackCoordinator:
    """
    Point a service back at the task definition it ran before we touched it.
    """

    def __init__(
        self,
        notifier: Optional[SlackNotifier] = None,
        slack_channel: Optional[str] = None,
        slack_token: Optional[str] = None
    ) -> None:
        self.notifier = notifier
        self.slack_channel = slack_channel
        self.slack_token = slack_token

    def notify(self, pk: str, new_arn: str, **kwargs) -> None:
        if not (self.notifier and self.slack_channel and self.slack_token):
            return
        try:
            message = rollback_message(service_name(pk), new_arn, **kwargs)
            self.notifier.notify(self.slack_channel, self.slack_token, message)
        except Exception:  # pylint: disable=broad-except
            logger.exception('Could not start the Slack notification for %s', pk)

    def rollback(
        self,
        pk: str,
        old_arn: str,
        new_arn: str,
        reason: str = TIMED_OUT,
        error: Optional[Exception] = None
    ) -> NoReturn:
        """
        Always raises: :py:class:`DeploymentFailed` if ``reason`` is ``TIMED_OUT`` or
        ``FAILED``, :py:class:`DeploymentCancelled` if it is ``CANCELLED``, and
        :py:class:`RollbackFailed` if we couldn't update the service.

        ``error`` is what went wrong while we were waiting, when ``reason`` is ``FAILED``.

        We don't wait for the rollback to stabilize.
        """
        logger.warning('Rolling back to %s', old_arn)
        if reason == TIMED_OUT:
            self.notify(pk, new_arn)
        elif reason == FAILED:
            self.notify(pk, new_arn, why=f'we lost track of it while waiting ({error})')
        try:
            Service.objects.update_task_definition(pk, old_arn)
        except (APIFailure, TransportError) as e:
            raise RollbackFailed(service_name(pk), new_arn, old_arn, e) from e
        if reason == CANCELLED:
            raise DeploymentCancelled(service_name(pk), attempted_arn=new_arn, rolled_back_to=old_arn)
        raise DeploymentFailed(service_name(pk), new_arn, old_arn, error=error) from error


class RollingDeployment:
    """
    Deploy ``config.image`` to the service in ``config``, and roll back if it
    does not stabilize within ``config.timeout`` seconds.

    ``hooks`` are passed on to the :py:class:`StabilizationWatcher`.  ``sleep`` and
    ``clock`` are for testing.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        notifier: Optional[SlackNotifier] = None,
        hooks: Optional[List[Callable]] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> None:
        self.config = config
        if notifier is None and config.notifications_enabled:
            notifier = SlackNotifier()
        self.cancel_event = cancel_event if cancel_event else threading.Event()
        self.hooks = hooks if hooks else []
        self.sleep = sleep
        self.clock = clock
        self.issuer = DeploymentIssuer(cancel_event=self.cancel_event)
        self.coordinator = RollbackCoordinator(
            notifier=notifier,
            slack_channel=config.slack_channel,
            slack_token=config.slack_token
        )

    def watcher(self) -> StabilizationWatcher:
        return StabilizationWatcher(
            self.config.pk,
            self.config.timeout,
            poll_interval=self.config.poll_interval,
            hooks=self.hooks,
            cancel_event=self.cancel_event,
            sleep=self.sleep,
            clock=self.clock
        )

    def run(self) -> DeploymentResult:
        old_arn, new_arn = self.issuer.deploy(self.config.pk, self.config.image, patch=self.config.patch)
        # The service is running new_arn now: from here on, any failure ends in a rollback
        logger.info('Waiting for service %s to be deployed', self.config.service)
        watcher = self.watcher()
        try:
            state = watcher.wait()
        except Exception as e:  # pylint: disable=broad-except
            logger.error('Error while waiting for %s to stabilize: %s', self.config.service, e)
            self.coordinator.rollback(self.config.pk, old_arn, new_arn, reason=FAILED, error=e)
        if state == STABLE:
            logger.info('New version of %s deployed successfully', self.config.service)
            return DeploymentResult(
                service=self.config.pk,
                old_arn=old_arn,
                new_arn=new_arn,
                state=state,
                num_attempts=watcher.num_attempts,
                elapsed=watcher.elapsed
            )
        if state == TIMED_OUT:
            logger.error('Timeout after %d seconds', watcher.max_tries * watcher.poll_interval)
        else:
            logger.warning('Cancelled while waiting for %s to stabilize', self.config.service)
        self.coordinator.rollback(self.config.pk, old_arn, new_arn, reason=state)
