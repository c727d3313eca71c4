from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ecsdeploy.exceptions import UnsupportedTopologyError

from .abstract import Manager, Model


__all__ = [
    'ContainerDefinition',
    'Service',
    'ServiceManager',
    'TaskDefinition',
    'TaskDefinitionManager',
    'merge_container_definition',
]


def merge_container_definition(
    base: Dict[str, Any],
    patch: Optional[Dict[str, Any]],
    image: str
) -> Dict[str, Any]:
    """
    Build a new container definition from ``base``.  Keys in ``patch`` override
    keys in ``base``, and ``image`` always wins, even if ``patch`` has an
    ``image`` key of its own.

    Neither ``base`` nor ``patch`` is modified.
    """
    merged = deepcopy(base)
    if patch:
        merged.update(deepcopy(patch))
    merged['image'] = image
    return merged


# ----------------------------------------
# Managers
# ----------------------------------------

class TaskDefinitionManager(Manager):

    service = 'ecs'

    def get(self, pk: str, **_) -> "TaskDefinition":
        """
        :param pk str: a task definition ARN, or a "{family}:{revision}" string
        """
        response = self.call('describe_task_definition', taskDefinition=pk, include=['TAGS'])
        data = response['taskDefinition']
        # For some reason, tags are not included as part of the task definition, but are alongside it
        if response.get('tags'):
            data['tags'] = response['tags']
        containers = [ContainerDefinition(d) for d in data.pop('containerDefinitions', [])]
        return TaskDefinition(data, containers=containers)

    def save(self, obj: "TaskDefinition", **_) -> "TaskDefinition":
        """
        Register ``obj`` as a new revision of its family.

        :rtype: TaskDefinition: the task definition as AWS now has it, with ARN and revision
        """
        response = self.call('register_task_definition', **obj.render_for_register())
        data = response['taskDefinition']
        if response.get('tags'):
            data['tags'] = response['tags']
        containers = [ContainerDefinition(d) for d in data.pop('containerDefinitions', [])]
        return TaskDefinition(data, containers=containers)


class ServiceManager(Manager):

    service: str = 'ecs'

    def __get_service_and_cluster_from_pk(self, pk: str) -> Tuple[str, str]:
        cluster, service = pk.split(':', 1)
        return service, cluster

    def get(self, pk: str, **_) -> "Service":
        """
        :param pk str: a string like "{cluster_name}:{service_name}"
        """
        service, cluster = self.__get_service_and_cluster_from_pk(pk)
        response = self.call('describe_services', cluster=cluster, services=[service])
        if response['services'] and response['services'][0]['status'] != 'INACTIVE':
            data = response['services'][0]
        else:
            raise Service.DoesNotExist(
                'No service named "{}" in cluster "{}" exists in AWS'.format(service, cluster)
            )
        return Service(data)

    def update_task_definition(self, pk: str, task_definition_arn: str) -> "Service":
        """
        Point the service named by ``pk`` at the task definition ``task_definition_arn``.
        ECS takes it from there and starts a new deployment.
        """
        service, cluster = self.__get_service_and_cluster_from_pk(pk)
        response = self.call(
            'update_service',
            cluster=cluster,
            service=service,
            taskDefinition=task_definition_arn
        )
        return Service(response['service'])


# ----------------------------------------
# Models
# ----------------------------------------

class TaskDefinition(Model):
    """
    An ECS Task Definition.

    .. note::

        In AWS, the task definition object contains all the configuration for each of the containers that
        will be part of the task, but here we put container definitions into ``ContainerDefinition``
        objects so that we can work with them more effectively.

    ``TaskDefinition.data`` looks like this::

        'taskDefinitionArn': 'string',                        Not present until registered
        'family': 'string',
        'taskRoleArn': 'string',                              [optional]
        'executionRoleArn': 'string',                         [optional]
        'networkMode': 'bridge'|'host'|'awsvpc'|'none',       [optional]
        'requiresCompatibilities': [
            'EC2'|'FARGATE',
        ],
        'cpu': 'string',                                      [optional]
        'memory': 'string',                                   [optional]
        'revision': 123,                                      Not present until registered
        'volumes': [...],                                     [optional]
        'placementConstraints': [...],                        [optional]
        'tags': [
            {
                'key': 'string',
                'value': 'string'
            }
        ]
    """

    objects = TaskDefinitionManager()

    #: Keys we copy into a new revision when they are set
    PASSTHROUGH_KEYS: Sequence[str] = (
        'networkMode',
        'cpu',
        'memory',
        'pidMode',
        'ipcMode',
        'proxyConfiguration',
        'inferenceAccelerators',
        'ephemeralStorage',
        'runtimePlatform',
    )
    #: Keys we always send on register, with the value to use when they are not set
    UNIFORM_KEYS: Dict[str, Any] = {
        'taskRoleArn': '',
        'executionRoleArn': '',
        'volumes': [],
        'placementConstraints': [],
        'requiresCompatibilities': [],
    }

    def __init__(self, data: Dict[str, Any], containers: List["ContainerDefinition"] = None) -> None:
        super().__init__(data)
        self.containers: List[ContainerDefinition] = containers if containers else []

    # ---------------------
    # Model overrides
    # ---------------------

    @property
    def pk(self) -> str:
        """
        If this task definition exists in AWS, return our ``<family>:<revision>`` string.
        Else, return just the family.
        """
        if self.revision:
            return f"{self.family}:{self.revision}"
        return self.family

    @property
    def arn(self) -> Optional[str]:
        return self.data.get('taskDefinitionArn', None)

    def render(self) -> Dict[str, Any]:
        data = deepcopy(self.data)
        data['containerDefinitions'] = [c.render() for c in self.containers]
        return data

    def render_for_diff(self) -> Dict[str, Any]:
        return self.render_for_register()

    def render_for_register(self) -> Dict[str, Any]:
        """
        Prepare the AWS payload for boto3.client('ecs').register_task_definition().

        The optional keys in ``UNIFORM_KEYS`` are always present so every
        registration looks the same; read-only keys like ``taskDefinitionArn``
        and ``revision`` are never sent.
        """
        data: Dict[str, Any] = {
            'family': self.family,
            'containerDefinitions': [c.render() for c in self.containers],
        }
        for key, default in self.UNIFORM_KEYS.items():
            value = self.data.get(key)
            data[key] = deepcopy(value) if value else deepcopy(default)
        for key in self.PASSTHROUGH_KEYS:
            if self.data.get(key):
                data[key] = deepcopy(self.data[key])
        if self.data.get('tags'):
            data['tags'] = deepcopy(self.data['tags'])
        return data

    def save(self) -> "TaskDefinition":
        return self.objects.save(self)

    # ----------------------------------
    # TaskDefinition-specific properties
    # ----------------------------------

    @property
    def family(self) -> str:
        return self.data['family']

    @property
    def revision(self) -> Optional[int]:
        return self.data.get('revision', None)

    # ------------------------
    # Deployment actions
    # ------------------------

    def mutate(self, patch: Optional[Dict[str, Any]], image: str) -> "TaskDefinition":
        """
        Return a new, unregistered copy of this task definition whose single
        container definition has ``patch`` applied and its image set to ``image``.

        :raises UnsupportedTopologyError: we don't have exactly one container definition
        """
        if len(self.containers) != 1:
            raise UnsupportedTopologyError(
                f'TaskDefinition(pk="{self.pk}") has {len(self.containers)} container definitions; only task '
                'definitions with exactly one container are supported'
            )
        data = self.render_for_register()
        del data['containerDefinitions']
        container = self.containers[0].patched(patch, image)
        return self.__class__(data, containers=[container])


class ContainerDefinition:

    def __init__(self, data: Dict[str, Any]):
        self.data: Dict[str, Any] = data

    def render(self) -> Dict[str, Any]:
        return deepcopy(self.data)

    def patched(self, patch: Optional[Dict[str, Any]], image: str) -> "ContainerDefinition":
        return self.__class__(merge_container_definition(self.data, patch, image))


class Service(Model):
    """
    An ECS Service, as returned by ``describe_services``.  The pieces we care
    about are ``taskDefinition`` (the ARN the service is running) and
    ``deployments``: more than one entry there means ECS is still replacing
    tasks from an older deployment.
    """

    objects = ServiceManager()

    def __init__(self, data: Dict[str, Any]) -> None:
        super().__init__(data)
        if 'cluster' not in self.data and 'clusterArn' in self.data:
            self.data['cluster'] = self.data['clusterArn'].split('/')[-1]

    # ---------------------
    # Model overrides
    # ---------------------

    @property
    def pk(self) -> str:
        """
        Service names are only unique within a cluster, so to fully identify a service you have to
        also specify the cluster: "{cluster_name}:{service_name}".
        """
        return '{}:{}'.format(self.data['cluster'], self.data['serviceName'])

    # ---------------------
    # Service properties
    # ---------------------

    @property
    def task_definition_arn(self) -> str:
        return self.data['taskDefinition']

    @property
    def events(self) -> List[Dict[str, Any]]:
        return self.data.get('events', [])

    @property
    def deployments(self) -> List[Dict[str, Any]]:
        return self.data.get('deployments', [])

    @property
    def is_stable(self) -> bool:
        """
        ``True`` once ECS has drained every deployment but one.
        """
        return len(self.deployments) <= 1
