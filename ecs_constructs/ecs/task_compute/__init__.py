#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.common.metadata import ConstructMetadata
    from ecs_constructs.ecs.task_definition import TaskDefinition

from ecs_constructs.common.lazy import Lazy, resolve_value
from ecs_constructs.common.logging import LOG
from ecs_constructs.ecs.docker_tools import (
    find_closest_fargate_configuration,
    is_valid_fargate_configuration,
    set_cpu_units,
    set_memory_to_mb,
)

from .helpers import check_resource_budget

BUDGET_ORIGIN = "resource-budget"


class TaskCompute:
    """
    Class to handle the task definition compute settings (CPU/RAM), set once when the task definition is created.

    Values can be Lazy, in which case they are resolved only when the template is synthesized.

    :ivar TaskDefinition task_definition:
    """

    def __init__(self, task_definition: TaskDefinition, cpu=None, memory_mib=None):
        self.task_definition = task_definition
        self._raw_cpu = cpu
        self._raw_ram = memory_mib
        if not isinstance(cpu, Lazy) and cpu is not None:
            self._raw_cpu = self.validate_cpu(cpu)
        if not isinstance(memory_mib, Lazy) and memory_mib is not None:
            self._raw_ram = self.validate_ram(memory_mib)

    @staticmethod
    def validate_cpu(value) -> int:
        cpu = set_cpu_units(value)
        if cpu <= 0:
            raise ValueError("Task CPU must be a positive value")
        return cpu

    @staticmethod
    def validate_ram(value) -> int:
        if isinstance(value, bool):
            raise TypeError(f"Task RAM must be an int or units string. Got {value}")
        ram = set_memory_to_mb(value)
        if ram <= 0:
            raise ValueError("Task RAM must be a positive value")
        return ram

    @property
    def family_cpu(self) -> int | None:
        cpu = resolve_value(self._raw_cpu)
        if cpu is None:
            return None
        return self.validate_cpu(cpu)

    @property
    def family_ram(self) -> int | None:
        ram = resolve_value(self._raw_ram)
        if ram is None:
            return None
        return self.validate_ram(ram)

    @property
    def cfn_family_cpu(self) -> str | None:
        cpu = self.family_cpu
        return str(cpu) if cpu is not None else None

    @property
    def cfn_family_ram(self) -> str | None:
        ram = self.family_ram
        return str(ram) if ram is not None else None

    def evaluate_fargate_profile(self) -> None:
        """
        Logs a warning if the CPU/RAM combination is not one supported by AWS Fargate.
        """
        cpu = self.family_cpu
        ram = self.family_ram
        if cpu is None or ram is None or is_valid_fargate_configuration(cpu, ram):
            return
        closest_cpu, closest_ram = find_closest_fargate_configuration(cpu, ram)
        LOG.warning(
            f"{self.task_definition.path} - CPU {cpu} / RAM {ram} is not a valid Fargate configuration. "
            f"Closest valid configuration is CPU {closest_cpu} / RAM {closest_ram}"
        )

    def validate_containers_budget(self, metadata: ConstructMetadata) -> list[str]:
        """
        Checks the containers compute requests against the task CPU/RAM and records the warnings
        in the metadata. Previous warnings from this check are replaced.

        :param ConstructMetadata metadata: the log the warnings are added to
        :return: the warnings
        """
        metadata.reset(BUDGET_ORIGIN)
        warnings = check_resource_budget(
            self.family_cpu,
            self.family_ram,
            [
                container.compute_request
                for container in self.task_definition.containers
            ],
        )
        for warning in warnings:
            metadata.add_warning(warning, origin=BUDGET_ORIGIN)
        return warnings
