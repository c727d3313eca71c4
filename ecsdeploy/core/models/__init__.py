from .abstract import Manager, Model  # noqa:F401
from .ecs import (  # noqa:F401
    ContainerDefinition,
    Service,
    ServiceManager,
    TaskDefinition,
    TaskDefinitionManager,
    merge_container_definition,
)
