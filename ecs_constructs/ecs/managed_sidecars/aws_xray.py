#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Simple functions to manage AWS XRay sidecar
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.ecs_container import ContainerDefinition
    from ecs_constructs.ecs.task_definition import TaskDefinition

from ecs_constructs.common.logging import LOG
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.ecs_container import PortMapping
from ecs_constructs.ecs.ecs_params import (
    AWS_XRAY_IMAGE,
    UDP,
    XRAY_CPU,
    XRAY_NAME,
    XRAY_POLICY,
    XRAY_PORT,
    XRAY_RAM,
)
from ecs_constructs.iam import aws_managed_policy


def get_xray_container(task_definition: TaskDefinition) -> ContainerDefinition | None:
    for container in task_definition.containers:
        if container.name == XRAY_NAME:
            return container
    return None


def set_xray(task_definition: TaskDefinition) -> ContainerDefinition:
    """
    Automatically adds the xray-daemon sidecar to the task definition, and allows the task role
    to send the traces to AWS X-Ray.

    Should only be invoked once. If the xray-daemon container already exists, it is returned as is.
    """
    xray_container = get_xray_container(task_definition)
    if xray_container:
        LOG.warning(
            f"{task_definition.path} - {XRAY_NAME} container is already defined. Not adding it again"
        )
        return xray_container
    xray_container = task_definition.add_container(
        XRAY_NAME,
        ContainerImage.from_registry(AWS_XRAY_IMAGE),
        cpu=XRAY_CPU,
        memory_reservation_mib=XRAY_RAM,
        essential=False,
    )
    xray_container.add_port_mappings(PortMapping(XRAY_PORT, protocol=UDP))
    task_definition.task_role.add_managed_policy(aws_managed_policy(XRAY_POLICY))
    return xray_container
