from typing import Any, Dict, List, Optional


class ECSDeployError(Exception):
    """
    Base class for everything that can stop a deploy.  ``exit_code`` is the
    status the process exits with when this reaches the top level.
    """

    exit_code: int = 1


class ConfigValidationError(ECSDeployError):
    """
    The command line arguments (or the config file) do not describe a usable
    deployment.  Raised before we talk to AWS at all.
    """

    def __init__(self, errors: List[str]) -> None:
        super().__init__('\n'.join(errors))
        self.errors = errors


class UnsupportedTopologyError(ECSDeployError):
    """
    The service's task definition does not have exactly one container definition.
    """
    pass


class APIFailure(ECSDeployError):
    """
    ECS told us our request failed, either with a non-empty ``failures`` list in
    the response or with an error response.
    """

    def __init__(self, operation: str, details: Any) -> None:
        super().__init__()
        self.operation = operation
        self.details = details

    def __str__(self) -> str:
        return f'{self.operation} failed: {self.details}'


class ObjectDoesNotExist(APIFailure):
    """
    We tried to get a single object but it does not exist in AWS.
    """

    def __init__(self, msg: str, operation: str = 'describe') -> None:
        super().__init__(operation, msg)

    def __str__(self) -> str:
        return str(self.details)


class TransportError(ECSDeployError):
    """
    We could not complete a call to AWS at all: no network, no credentials,
    timeouts, that kind of thing.
    """
    pass


class DeploymentFailed(ECSDeployError):
    """
    The service did not stabilize on the new task definition, or we lost track
    of it while waiting (``error`` is set then), so we pointed it back at the
    old one.
    """

    def __init__(
        self,
        service: str,
        attempted_arn: str,
        rolled_back_to: str,
        error: Optional[Exception] = None
    ) -> None:
        super().__init__()
        self.service = service
        self.attempted_arn = attempted_arn
        self.rolled_back_to = rolled_back_to
        self.error = error

    def __str__(self) -> str:
        if self.error:
            return (
                f'Failed to deploy service {self.service}: error while waiting for task definition '
                f'{self.attempted_arn} to stabilize: {self.error}.  Rolled back to {self.rolled_back_to}'
            )
        return (
            f'Failed to deploy service {self.service}: task definition {self.attempted_arn} did not '
            f'stabilize.  Rolled back to {self.rolled_back_to}'
        )


class DeploymentCancelled(DeploymentFailed):
    """
    We were interrupted.  If we had already updated the service, ``rolled_back_to``
    is the task definition we rolled back to; otherwise it is ``None`` and the
    service was never touched.
    """

    exit_code = 130

    def __init__(
        self,
        service: str,
        attempted_arn: Optional[str] = None,
        rolled_back_to: Optional[str] = None
    ) -> None:
        super().__init__(service, attempted_arn, rolled_back_to)  # type: ignore

    def __str__(self) -> str:
        if self.rolled_back_to:
            return f'Deploy of service {self.service} cancelled.  Rolled back to {self.rolled_back_to}'
        return f'Deploy of service {self.service} cancelled before the service was updated'


class RollbackFailed(ECSDeployError):
    """
    The new task definition did not stabilize, and then pointing the service
    back at the old task definition failed too.  The service is left running
    ``attempted_arn``, and someone needs to look at it.
    """

    exit_code = 3

    def __init__(self, service: str, attempted_arn: str, old_arn: str, error: Exception) -> None:
        super().__init__()
        self.service = service
        self.attempted_arn = attempted_arn
        self.old_arn = old_arn
        self.error = error

    def __str__(self) -> str:
        return (
            f'Failed to deploy service {self.service} with {self.attempted_arn}, AND failed to roll '
            f'back to {self.old_arn}: {self.error}'
        )


def failures_detail(failures: List[Dict[str, Any]]) -> str:
    return '; '.join(
        '{}: {}{}'.format(
            f.get('arn', 'unknown'),
            f.get('reason', 'unknown'),
            f" ({f['detail']})" if f.get('detail') else ''
        ) for f in failures
    )
