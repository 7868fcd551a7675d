#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Container definition of a task definition
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.task_definition import TaskDefinition
    from ecs_constructs.ecs.log_drivers import AwsLogDriver

from troposphere import NoValue
from troposphere.ecs import ContainerDefinition as CfnContainerDefinition
from troposphere.ecs import (
    ContainerDependency,
    Environment,
    MountPoint,
    PortMapping as CfnPortMapping,
    Ulimit,
)

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.ecs_params import (
    AWS_VPC,
    CONTAINER_DEPENDENCY_CONDITIONS,
    PROTOCOLS,
    TCP,
)
from ecs_constructs.ecs.task_compute.helpers import ContainerRequest


def import_env_variables(environment) -> list:
    """
    Function to import environment variables into ECS Env Variables

    Supports a mapping of name/value, or a single {"name": x, "value": y} definition.

    :param dict environment:
    :return: list of Environment
    :rtype: list<troposphere.ecs.Environment>
    """
    env_vars = []
    if not environment:
        return env_vars
    if not isinstance(environment, dict):
        raise TypeError("environment must be a dict. Got", type(environment))
    if set(environment.keys()) == {"name", "value"}:
        return [Environment(Name=environment["name"], Value=str(environment["value"]))]
    for key, value in environment.items():
        env_vars.append(Environment(Name=key, Value=str(value)))
    return env_vars


def define_command(command) -> list | None:
    """
    Returns the command as a list. String commands are delimited by commas.
    """
    if command is None:
        return None
    if isinstance(command, str):
        return [part.strip() for part in command.split(",")]
    if isinstance(command, (list, tuple)):
        return list(command)
    raise TypeError("command must be a str or list. Got", type(command))


def validate_non_negative(name: str, value) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int. Got {value}")
    if value < 0:
        raise ValueError(f"{name} must be a non-negative value. Got {value}")
    return value


class PortMapping:
    """
    Port of the container and its mapping onto the host.
    """

    def __init__(self, container_port: int, host_port: int = None, protocol: str = TCP):
        if protocol not in PROTOCOLS:
            raise ValueError(
                f"Protocol {protocol} is invalid. Must be one of", PROTOCOLS
            )
        if not isinstance(container_port, int) or not 0 < container_port < 65536:
            raise ValueError(f"Container port {container_port} is invalid")
        self.container_port = container_port
        self.host_port = host_port
        self.protocol = protocol

    def __repr__(self):
        return f"{self.host_port}:{self.container_port}/{self.protocol}"

    def to_cfn(self) -> CfnPortMapping:
        props = {"ContainerPort": self.container_port, "Protocol": self.protocol}
        if self.host_port is not None:
            props["HostPort"] = self.host_port
        return CfnPortMapping(**props)


class ContainerDefinition(Construct):
    """
    Class to represent the container definition and its settings.
    The CPU / RAM set here are checked against the task definition ones when the template is synthesized.

    :ivar TaskDefinition task_definition:
    :ivar ContainerImage image:
    :ivar AwsLogDriver logging:
    """

    def __init__(
        self,
        task_definition: TaskDefinition,
        id: str,
        image: ContainerImage,
        cpu: int = None,
        memory_limit_mib: int = None,
        memory_reservation_mib: int = None,
        command=None,
        entry_point: list = None,
        environment: dict = None,
        essential: bool = True,
        logging: AwsLogDriver = None,
        hostname: str = None,
        working_directory: str = None,
        docker_labels: dict = None,
    ):
        if not isinstance(image, ContainerImage):
            raise TypeError("image must be a", ContainerImage, "Got", type(image))
        cpu = validate_non_negative("cpu", cpu)
        memory_limit_mib = validate_non_negative("memory_limit_mib", memory_limit_mib)
        memory_reservation_mib = validate_non_negative(
            "memory_reservation_mib", memory_reservation_mib
        )
        if (
            memory_limit_mib is not None
            and memory_reservation_mib is not None
            and memory_limit_mib < memory_reservation_mib
        ):
            raise ValueError(
                f"{id} - Memory limit ({memory_limit_mib}) must be greater than or equal "
                f"to memory reservation ({memory_reservation_mib})"
            )
        super().__init__(task_definition, id)
        self.task_definition = task_definition
        self.image = image
        self.compute_request = ContainerRequest(
            id, cpu, memory_limit_mib, memory_reservation_mib
        )
        self.command = define_command(command)
        self.entry_point = entry_point
        self.environment = import_env_variables(environment)
        self.essential = essential
        self.logging = logging
        self.hostname = hostname
        self.working_directory = working_directory
        self.docker_labels = docker_labels if docker_labels else {}
        self.port_mappings = []
        self.mount_points = []
        self.ulimits = []
        self.container_dependencies = []
        self.cfn_definition = None

    @property
    def name(self) -> str:
        return self.id

    @property
    def cpu(self) -> int | None:
        return self.compute_request.cpu

    @property
    def memory_limit_mib(self) -> int | None:
        return self.compute_request.memory_limit_mib

    @property
    def memory_reservation_mib(self) -> int | None:
        return self.compute_request.memory_reservation_mib

    @property
    def ingress_port(self) -> int:
        """
        The port of the first port mapping, used by load balancers and service discovery
        """
        if not self.port_mappings:
            raise AttributeError(f"{self.name} has no port mappings defined")
        mapping = self.port_mappings[0]
        return mapping.host_port if mapping.host_port is not None else mapping.container_port

    def add_port_mappings(self, *port_mappings: PortMapping) -> None:
        """
        Adds the port mappings. With awsvpc, host port must be the container port.

        :raises ValueError: if host and container ports differ in awsvpc networking mode
        """
        for mapping in port_mappings:
            if self.task_definition.network_mode == AWS_VPC:
                if mapping.host_port is None:
                    mapping.host_port = mapping.container_port
                elif mapping.host_port != mapping.container_port:
                    raise ValueError(
                        f"{self.name} - Host port {mapping.host_port} must be equal to "
                        f"container port {mapping.container_port} with {AWS_VPC} networking mode"
                    )
            self.port_mappings.append(mapping)

    def add_mount_points(self, *mount_points: dict) -> None:
        """
        :param dict mount_points: source_volume, container_path and optional read_only
        """
        for mount_point in mount_points:
            self.mount_points.append(
                MountPoint(
                    SourceVolume=mount_point["source_volume"],
                    ContainerPath=mount_point["container_path"],
                    ReadOnly=bool(mount_point.get("read_only", False)),
                )
            )

    def add_ulimits(self, *ulimits: dict) -> None:
        """
        :param dict ulimits: name, soft_limit and hard_limit
        """
        for ulimit in ulimits:
            self.ulimits.append(
                Ulimit(
                    Name=ulimit["name"],
                    SoftLimit=int(ulimit["soft_limit"]),
                    HardLimit=int(ulimit["hard_limit"]),
                )
            )

    def add_container_dependencies(
        self, container: ContainerDefinition, condition: str = "START"
    ) -> None:
        if condition not in CONTAINER_DEPENDENCY_CONDITIONS:
            raise ValueError(
                f"Condition {condition} is invalid. Must be one of",
                CONTAINER_DEPENDENCY_CONDITIONS,
            )
        if container is self:
            raise ValueError(f"{self.name} cannot depend on itself")
        if container.name in [dep[0].name for dep in self.container_dependencies]:
            LOG.debug(f"{self.name} already depends on {container.name}")
            return
        self.container_dependencies.append((container, condition))

    def render_container_definition(self) -> CfnContainerDefinition:
        """
        The troposphere ContainerDefinition, rendered into the task definition.
        """
        self.cfn_definition = CfnContainerDefinition(
            Name=self.name,
            Image=self.image.image_name,
            Cpu=self.cpu if self.cpu is not None else NoValue,
            Memory=self.memory_limit_mib if self.memory_limit_mib is not None else NoValue,
            MemoryReservation=self.memory_reservation_mib
            if self.memory_reservation_mib is not None
            else NoValue,
            Command=self.command if self.command else NoValue,
            EntryPoint=self.entry_point if self.entry_point else NoValue,
            Environment=self.environment if self.environment else NoValue,
            Essential=self.essential,
            Hostname=self.hostname if self.hostname else NoValue,
            WorkingDirectory=self.working_directory
            if self.working_directory
            else NoValue,
            DockerLabels=self.docker_labels if self.docker_labels else NoValue,
            LogConfiguration=self.logging.render_log_configuration()
            if self.logging
            else NoValue,
            PortMappings=[mapping.to_cfn() for mapping in self.port_mappings]
            if self.port_mappings
            else NoValue,
            MountPoints=self.mount_points if self.mount_points else NoValue,
            Ulimits=self.ulimits if self.ulimits else NoValue,
            DependsOn=[
                ContainerDependency(ContainerName=dep[0].name, Condition=dep[1])
                for dep in self.container_dependencies
            ]
            if self.container_dependencies
            else NoValue,
        )
        return self.cfn_definition
