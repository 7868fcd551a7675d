#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.ecs_service import BaseService

from troposphere import NoValue
from troposphere.ecs import (
    AwsvpcConfiguration,
    DeploymentCircuitBreaker,
    DeploymentConfiguration,
    NetworkConfiguration,
)

from ecs_constructs.ecs.placement import (
    AVAILABILITY_ZONE,
    INSTANCE_ID,
    PlacementStrategy,
)


def define_placement_strategies() -> list[PlacementStrategy]:
    """
    Function to generate placement strategies. Defaults to spreading across all AZs, then instances

    :return: list of placement strategies
    """
    return [
        PlacementStrategy.spread_across(AVAILABILITY_ZONE),
        PlacementStrategy.spread_across(INSTANCE_ID),
    ]


def validate_deploy_percents(min_percent: int, max_percent: int) -> None:
    if min_percent is not None and not 0 <= min_percent <= 100:
        raise ValueError(
            f"min_healthy_percent must be between 0 and 100. Got {min_percent}"
        )
    if max_percent is not None and max_percent < 100:
        raise ValueError(
            f"max_healthy_percent must be at least 100. Got {max_percent}"
        )
    if (
        min_percent is not None
        and max_percent is not None
        and max_percent <= min_percent
    ):
        raise ValueError(
            f"max_healthy_percent ({max_percent}) must be greater than min_healthy_percent ({min_percent})"
        )


def define_deployment_options(service: BaseService) -> DeploymentConfiguration:
    """
    Function to define the DeploymentConfiguration
    Default is to have Rollback and CircuitBreaker on.

    :param BaseService service:
    """
    return DeploymentConfiguration(
        MaximumPercent=service.max_healthy_percent
        if service.max_healthy_percent is not None
        else NoValue,
        MinimumHealthyPercent=service.min_healthy_percent
        if service.min_healthy_percent is not None
        else NoValue,
        DeploymentCircuitBreaker=DeploymentCircuitBreaker(
            Enable=True, Rollback=True
        )
        if service.circuit_breaker
        else NoValue,
    )


def define_network_configuration(
    subnets: list, security_groups: list = None, assign_public_ip: bool = False
) -> NetworkConfiguration:
    """
    Network configuration of the services using awsvpc network mode
    """
    return NetworkConfiguration(
        AwsvpcConfiguration=AwsvpcConfiguration(
            AssignPublicIp="ENABLED" if assign_public_ip else "DISABLED",
            SecurityGroups=security_groups if security_groups else NoValue,
            Subnets=subnets,
        )
    )
