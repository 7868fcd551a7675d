#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Task definitions, holding the containers and the task level settings.
"""

from __future__ import annotations

from troposphere import NoValue, Template
from troposphere.ecs import Host
from troposphere.ecs import TaskDefinition as CfnTaskDefinition
from troposphere.ecs import Volume

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.troposphere_tools import add_resource
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.ecs_container import ContainerDefinition
from ecs_constructs.ecs.ecs_params import (
    AWS_VPC,
    BRIDGE,
    COMPATIBILITIES,
    EC2,
    ECS_EXECUTION_MANAGED_POLICY,
    FARGATE,
    FARGATE_DEFAULT_CPU,
    FARGATE_DEFAULT_RAM,
    NETWORK_MODES,
)
from ecs_constructs.ecs.placement import PlacementConstraint
from ecs_constructs.ecs.task_compute import TaskCompute
from ecs_constructs.exceptions import IncompatibleOptions
from ecs_constructs.iam.iam_role import ImportedRole, Role

ECS_TASKS_SERVICE = "ecs-tasks"


def set_task_role(task_definition: TaskDefinition, task_role) -> Role | ImportedRole:
    """
    Returns the IAM role the containers use.
    A new role is created if none is given, an ARN string imports an existing one.
    """
    if task_role is None:
        return Role(task_definition, "TaskRole", ECS_TASKS_SERVICE)
    elif isinstance(task_role, (Role, ImportedRole)):
        return task_role
    elif isinstance(task_role, str):
        return Role.from_role_arn(task_definition, "TaskRole", task_role)
    raise TypeError(
        "task_role must be a Role or role ARN. Got", type(task_role)
    )


class TaskDefinition(Construct):
    """
    Base class of the ECS Task definitions

    :ivar str compatibility: EC2, FARGATE or EC2_AND_FARGATE
    :ivar str network_mode:
    :ivar TaskCompute task_compute: the task CPU / RAM settings
    :ivar list[ContainerDefinition] containers: the containers, in the order they were added
    :ivar Role task_role:
    :ivar Role execution_role:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        compatibility: str,
        family: str = None,
        network_mode: str = None,
        cpu=None,
        memory_mib=None,
        task_role=None,
        execution_role=None,
        volumes: list = None,
        placement_constraints: list = None,
    ):
        if compatibility not in COMPATIBILITIES:
            raise ValueError(
                f"Compatibility {compatibility} is invalid. Must be one of",
                list(COMPATIBILITIES.keys()),
            )
        if network_mode is None:
            network_mode = BRIDGE if compatibility == EC2 else AWS_VPC
        if network_mode not in NETWORK_MODES:
            raise ValueError(
                f"Network mode {network_mode} is invalid. Must be one of",
                NETWORK_MODES,
            )
        if FARGATE in COMPATIBILITIES[compatibility] and network_mode != AWS_VPC:
            raise IncompatibleOptions(
                f"Fargate tasks only support {AWS_VPC} network mode. Got {network_mode}"
            )
        if placement_constraints and FARGATE in COMPATIBILITIES[compatibility]:
            raise IncompatibleOptions(
                "Cannot set placement constraints on tasks that run on Fargate"
            )
        super().__init__(scope, id)
        self.compatibility = compatibility
        self.network_mode = network_mode
        self._family = family
        self.task_compute = TaskCompute(self, cpu, memory_mib)
        self.containers = []
        self.volumes = []
        self.placement_constraints = []
        self.task_role = set_task_role(self, task_role)
        self.execution_role = None
        if isinstance(execution_role, str):
            self.execution_role = Role.from_role_arn(
                self, "ExecutionRole", execution_role
            )
        elif execution_role is not None:
            self.execution_role = execution_role
        if volumes:
            for volume in volumes:
                self.add_volume(**volume)
        if placement_constraints:
            for constraint in placement_constraints:
                self.add_placement_constraint(constraint)
        self.cfn_resource = None

    @property
    def family(self) -> str:
        return self._family if self._family else self.logical_id

    @property
    def is_ec2_compatible(self) -> bool:
        return EC2 in COMPATIBILITIES[self.compatibility]

    @property
    def is_fargate_compatible(self) -> bool:
        return FARGATE in COMPATIBILITIES[self.compatibility]

    @property
    def default_container(self) -> ContainerDefinition | None:
        """
        The first essential container added to the task definition
        """
        for container in self.containers:
            if container.essential:
                return container
        return None

    def obtain_execution_role(self) -> Role | ImportedRole:
        """
        The role ECS uses to pull images and send logs, created the first time it is needed.
        """
        if self.execution_role is None:
            self.execution_role = Role(
                self,
                "ExecutionRole",
                ECS_TASKS_SERVICE,
                managed_policies=[ECS_EXECUTION_MANAGED_POLICY],
            )
        return self.execution_role

    def add_container(
        self, id: str, image: ContainerImage, **props
    ) -> ContainerDefinition:
        """
        Adds a container to the task definition.

        :param str id: name of the container
        :param ContainerImage image:
        :param props: settings of the container, see ContainerDefinition
        :rtype: ContainerDefinition
        """
        if id in [container.name for container in self.containers]:
            raise ValueError(
                f"{self.path} - Container {id} is already defined. Container names must be unique"
            )
        container = ContainerDefinition(self, id, image, **props)
        image.bind(self)
        if container.logging:
            container.logging.bind(self)
        self.containers.append(container)
        LOG.debug(f"{self.path} - Added container {container.name}")
        return container

    def add_volume(self, name: str, host_source_path: str = None) -> None:
        if name in [volume.Name for volume in self.volumes]:
            raise ValueError(f"{self.path} - Volume {name} is already defined")
        self.volumes.append(
            Volume(
                Name=name,
                Host=Host(SourcePath=host_source_path) if host_source_path else NoValue,
            )
        )

    def add_placement_constraint(self, constraint: PlacementConstraint) -> None:
        """
        Adds a memberOf placement constraint to the task definition.

        :raises IncompatibleOptions: when the task runs on Fargate
        """
        if self.is_fargate_compatible:
            raise IncompatibleOptions(
                "Cannot set placement constraints on tasks that run on Fargate"
            )
        cfn_constraints = constraint.to_task_definition_constraints()
        self.placement_constraints += cfn_constraints

    def add_to_task_role_policy(self, statement: dict) -> None:
        self.task_role.add_to_policy(statement)

    def add_to_execution_role_policy(self, statement: dict) -> None:
        self.obtain_execution_role().add_to_policy(statement)

    def validate(self) -> list:
        if self.containers and not self.default_container:
            return ["A task definition must have at least one essential container"]
        self.task_compute.validate_containers_budget(self.metadata)
        if self.is_fargate_compatible:
            self.task_compute.evaluate_fargate_profile()
        return []

    def render(self, template: Template) -> None:
        cpu = self.task_compute.cfn_family_cpu
        ram = self.task_compute.cfn_family_ram
        self.cfn_resource = CfnTaskDefinition(
            self.logical_id,
            Family=self.family,
            Cpu=cpu if cpu else NoValue,
            Memory=ram if ram else NoValue,
            NetworkMode=self.network_mode,
            RequiresCompatibilities=COMPATIBILITIES[self.compatibility],
            TaskRoleArn=self.task_role.arn,
            ExecutionRoleArn=self.execution_role.arn
            if self.execution_role
            else NoValue,
            Volumes=self.volumes if self.volumes else NoValue,
            PlacementConstraints=self.placement_constraints
            if self.placement_constraints
            else NoValue,
            ContainerDefinitions=[
                container.render_container_definition()
                for container in self.containers
            ],
        )
        add_resource(template, self.cfn_resource)


class Ec2TaskDefinition(TaskDefinition):
    """
    Task definition for tasks running on the EC2 instances of the cluster. Network mode defaults to bridge.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        family: str = None,
        network_mode: str = BRIDGE,
        cpu=None,
        memory_mib=None,
        task_role=None,
        execution_role=None,
        volumes: list = None,
        placement_constraints: list = None,
    ):
        super().__init__(
            scope,
            id,
            EC2,
            family=family,
            network_mode=network_mode,
            cpu=cpu,
            memory_mib=memory_mib,
            task_role=task_role,
            execution_role=execution_role,
            volumes=volumes,
            placement_constraints=placement_constraints,
        )


class FargateTaskDefinition(TaskDefinition):
    """
    Task definition for tasks running on AWS Fargate. Always uses awsvpc network mode.
    CPU and RAM default to the smallest Fargate profile.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        family: str = None,
        cpu=FARGATE_DEFAULT_CPU,
        memory_mib=FARGATE_DEFAULT_RAM,
        task_role=None,
        execution_role=None,
        volumes: list = None,
    ):
        super().__init__(
            scope,
            id,
            FARGATE,
            family=family,
            network_mode=AWS_VPC,
            cpu=cpu if cpu is not None else FARGATE_DEFAULT_CPU,
            memory_mib=memory_mib if memory_mib is not None else FARGATE_DEFAULT_RAM,
            task_role=task_role,
            execution_role=execution_role,
            volumes=volumes,
        )
