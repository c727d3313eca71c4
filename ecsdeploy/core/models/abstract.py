from copy import deepcopy
import json
import logging
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError
from jsondiff import diff

from ecsdeploy.core.aws import get_boto3_session
from ecsdeploy.exceptions import (
    APIFailure,
    ObjectDoesNotExist,
    TransportError,
    failures_detail,
)


logger = logging.getLogger(__name__)


class Manager:

    service: str

    def __init__(self):
        self._client = None

    @property
    def client(self):
        if self.service:
            self._client = get_boto3_session().client(self.service)
        else:
            self._client = None
        return self._client

    def call(self, operation: str, **kwargs) -> Dict[str, Any]:
        """
        Call ``operation`` (a boto3 client method name, e.g. ``describe_services``)
        with ``kwargs`` and return the response.

        Raises:
            APIFailure: AWS returned an error, or the response has a non-empty
                ``failures`` list
            TransportError: we couldn't complete the call at all
        """
        logger.debug('%s.%s(%s)', self.service, operation, ', '.join(sorted(kwargs.keys())))
        try:
            response = getattr(self.client, operation)(**kwargs)
        except ClientError as e:
            error = e.response.get('Error', {})
            raise APIFailure(
                operation,
                '{}: {}'.format(error.get('Code', 'Unknown'), error.get('Message', 'Unknown'))
            ) from e
        except BotoCoreError as e:
            raise TransportError(f'{operation}: {e}') from e
        if response.get('failures'):
            raise APIFailure(operation, failures_detail(response['failures']))
        return response


class Model:

    objects: Manager

    class DoesNotExist(ObjectDoesNotExist):
        """
        We tried to get a single object but it does not exist in AWS.
        """
        pass

    def __init__(self, data: Dict[str, Any]) -> None:
        self.data = data

    @property
    def pk(self) -> str:
        raise NotImplementedError

    def render_for_diff(self) -> Dict[str, Any]:
        return self.render()

    def render(self) -> Dict[str, Any]:
        data = deepcopy(self.data)
        return data

    def diff(self, other: "Model") -> Dict[str, Any]:
        """
        Return what would have to change to turn ``other`` into us, as a
        ``jsondiff`` explicit-syntax dict.
        """
        if self.__class__ != other.__class__:
            raise ValueError(f'{str(other)} is not a {self.__class__.__name__}')
        return json.loads(diff(other.render_for_diff(), self.render_for_diff(), syntax='explicit', dump=True))

    def __str__(self) -> str:
        return '{}(pk="{}")'.format(self.__class__.__name__, self.pk)
