import json
from typing import Any, Dict, List, NamedTuple, Optional

from ecsdeploy.exceptions import ConfigValidationError


DEFAULT_TIMEOUT = 60
DEFAULT_POLL_INTERVAL = 2

REQUIRED_OPTIONS = ['region', 'cluster', 'service', 'image']


def parse_patch(raw: Optional[str], errors: List[str]) -> Optional[Dict[str, Any]]:
    """
    Decode a ``--container-definition-patch`` value.  It has to be a JSON object;
    anything else is recorded in ``errors``.
    """
    if raw is None or raw == '':
        return None
    try:
        patch = json.loads(raw)
    except ValueError as e:
        errors.append(f'Error parsing container definition patch: {e}')
        return None
    if not isinstance(patch, dict):
        errors.append(
            f'Invalid container definition patch: expected a JSON object, got {type(patch).__name__}'
        )
        return None
    return patch


def parse_seconds(name: str, raw: Any, default: int, errors: List[str]) -> int:
    if raw is None or raw == '':
        return default
    try:
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise ValueError(raw)
        value = int(raw)
    except (TypeError, ValueError):
        errors.append(f'--{name} must be a whole number of seconds, not "{raw}"')
        return default
    if value <= 0:
        errors.append(f'--{name} must be greater than 0, not {value}')
        return default
    return value


class DeploymentConfig(NamedTuple):
    """
    Everything one run needs to know.  Build these with :py:meth:`new`, which
    validates its input, instead of calling the constructor directly.
    """

    region: str
    cluster: str
    service: str
    image: str
    patch: Optional[Dict[str, Any]] = None
    slack_channel: Optional[str] = None
    slack_token: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    poll_interval: int = DEFAULT_POLL_INTERVAL

    @classmethod
    def new(
        cls,
        region: Optional[str] = None,
        cluster: Optional[str] = None,
        service: Optional[str] = None,
        image: Optional[str] = None,
        container_definition_patch: Optional[str] = None,
        slack_channel: Optional[str] = None,
        slack_token: Optional[str] = None,
        timeout: Any = None,
        poll_interval: Any = None,
    ) -> "DeploymentConfig":
        """
        Validate raw option values and return a :py:class:`DeploymentConfig`.

        Raises:
            ConfigValidationError: one or more of the options are missing or
                malformed.  ``errors`` on the exception lists every problem found.
        """
        errors: List[str] = []
        given = {'region': region, 'cluster': cluster, 'service': service, 'image': image}
        missing = [name for name in REQUIRED_OPTIONS if not given[name]]
        if missing:
            errors.append('Missing required arguments: {}'.format(', '.join(f'--{name}' for name in missing)))
        patch = parse_patch(container_definition_patch, errors)
        timeout_seconds = parse_seconds('timeout', timeout, DEFAULT_TIMEOUT, errors)
        interval_seconds = parse_seconds('poll-interval', poll_interval, DEFAULT_POLL_INTERVAL, errors)
        if errors:
            raise ConfigValidationError(errors)
        return cls(
            region=region,  # type: ignore
            cluster=cluster,  # type: ignore
            service=service,  # type: ignore
            image=image,  # type: ignore
            patch=patch,
            slack_channel=slack_channel or None,
            slack_token=slack_token or None,
            timeout=timeout_seconds,
            poll_interval=interval_seconds,
        )

    @property
    def pk(self) -> str:
        """
        The primary key of our service: "{cluster}:{service}".
        """
        return f'{self.cluster}:{self.service}'

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.slack_channel and self.slack_token)
