#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Checks of the containers CPU / RAM requests against the task definition CPU / RAM.
"""

from __future__ import annotations

from dataclasses import dataclass

CPU_EXCEEDED = (
    "CPU specified for the container cannot be greater than the CPU for the task definition"
)
MEMORY_EXCEEDED = "Memory specified for the container cannot be greater than the memory for the task definition"
TOTAL_MEMORY_EXCEEDED = "Total memory specified for all containers cannot be greater than the memory for the task definition"


@dataclass(frozen=True)
class ContainerRequest:
    """
    CPU and RAM a container asks for.
    """

    name: str
    cpu: int | None = None
    memory_limit_mib: int | None = None
    memory_reservation_mib: int | None = None

    @property
    def has_memory(self) -> bool:
        return self.memory_limit_mib is not None or self.memory_reservation_mib is not None

    @property
    def memory_footprint(self) -> int:
        """
        The larger of the memory limit and reservation
        """
        return max(self.memory_limit_mib or 0, self.memory_reservation_mib or 0)


def check_resource_budget(
    task_cpu: int | None, task_memory: int | None, containers: list[ContainerRequest]
) -> list[str]:
    """
    Compares the task definition CPU & RAM to what the containers request.
    None for the task CPU or RAM means unbounded.

    :param int task_cpu:
    :param int task_memory:
    :param list[ContainerRequest] containers: containers, in the order they were added to the task.
    :return: the warnings, ordered by check then by container
    :rtype: list[str]
    """
    warnings = []
    if task_cpu is not None:
        for container in containers:
            if container.cpu is not None and container.cpu > task_cpu:
                warnings.append(CPU_EXCEEDED)

    if task_memory is not None:
        for container in containers:
            if (
                container.memory_limit_mib is not None
                and container.memory_limit_mib > task_memory
            ):
                warnings.append(MEMORY_EXCEEDED)

        total_memory = sum(container.memory_footprint for container in containers)
        if total_memory > task_memory:
            for container in containers:
                if container.has_memory:
                    warnings.append(TOTAL_MEMORY_EXCEEDED)
    return warnings
