#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Services, running and maintaining the desired count of tasks of a task definition onto a cluster.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.ecs_cluster import Cluster
    from ecs_constructs.ecs.ecs_container import ContainerDefinition

from troposphere import GetAtt, NoValue, Ref, Template
from troposphere.ecs import Service

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.troposphere_tools import add_resource
from ecs_constructs.ecs.ecs_cluster import ImportedCluster
from ecs_constructs.ecs.ecs_params import AWS_VPC, EC2, FARGATE, FARGATE_PLATFORM_VERSIONS
from ecs_constructs.ecs.managed_sidecars.aws_xray import set_xray
from ecs_constructs.ecs.placement import PlacementConstraint, PlacementStrategy
from ecs_constructs.ecs.service_scaling import ScalableTaskCount
from ecs_constructs.ecs.task_definition import TaskDefinition
from ecs_constructs.exceptions import IncompatibleOptions

from .helpers import (
    define_deployment_options,
    define_network_configuration,
    define_placement_strategies,
    validate_deploy_percents,
)

CAPACITY_ORIGIN = "cluster-capacity"


class BaseService(Construct):
    """
    Settings shared by the EC2 and Fargate services

    :ivar Cluster cluster:
    :ivar TaskDefinition task_definition:
    :ivar ScalableTaskCount scalable_task_count: set once auto_scale_task_count is called
    """

    launch_type = None

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        task_definition: TaskDefinition,
        desired_count: int = 1,
        service_name: str = None,
        min_healthy_percent: int = None,
        max_healthy_percent: int = None,
        health_check_grace_period: int = None,
        circuit_breaker: bool = True,
        subnets: list = None,
        security_groups: list = None,
    ):
        if not isinstance(task_definition, TaskDefinition):
            raise TypeError(
                "task_definition must be a", TaskDefinition, "Got", type(task_definition)
            )
        if desired_count is not None and desired_count < 0:
            raise ValueError(f"desired_count must be positive. Got {desired_count}")
        validate_deploy_percents(min_healthy_percent, max_healthy_percent)
        super().__init__(scope, id)
        self.cluster = cluster
        self.task_definition = task_definition
        self.desired_count = desired_count
        self.service_name = service_name
        self.min_healthy_percent = min_healthy_percent
        self.max_healthy_percent = max_healthy_percent
        self.health_check_grace_period = health_check_grace_period
        self.circuit_breaker = circuit_breaker
        self.subnets = subnets if subnets else cluster.subnets
        self.security_groups = security_groups if security_groups else []
        self.scalable_task_count = None
        self.cfn_resource = None

    @property
    def service_ref(self) -> Ref:
        return Ref(self.logical_id)

    @property
    def name(self) -> GetAtt:
        return GetAtt(self.logical_id, "Name")

    def auto_scale_task_count(
        self, max_capacity: int, min_capacity: int = 1
    ) -> ScalableTaskCount:
        """
        Enables the scaling of the number of tasks of the service.

        :param int max_capacity:
        :param int min_capacity:
        :rtype: ScalableTaskCount
        """
        if self.scalable_task_count:
            raise ValueError(f"{self.path} - AutoScaling of task count already enabled")
        self.scalable_task_count = ScalableTaskCount(
            self, "TaskCount", self, min_capacity=min_capacity, max_capacity=max_capacity
        )
        return self.scalable_task_count

    def add_tracing(self) -> ContainerDefinition:
        """
        Adds the AWS X-Ray daemon sidecar to the task definition of the service
        """
        return set_xray(self.task_definition)

    def network_configuration(self, assign_public_ip: bool = False):
        if self.task_definition.network_mode != AWS_VPC:
            return NoValue
        return define_network_configuration(
            self.subnets, self.security_groups, assign_public_ip
        )

    def validate(self) -> list:
        if self.task_definition.network_mode == AWS_VPC and not self.subnets:
            return [
                f"Subnets must be set on the service or cluster with {AWS_VPC} network mode"
            ]
        return []

    def service_props(self) -> dict:
        """
        The properties of the troposphere.ecs.Service common to all services
        """
        return {
            "Cluster": self.cluster.cluster_ref,
            "TaskDefinition": Ref(self.task_definition.logical_id),
            "DesiredCount": self.desired_count
            if self.desired_count is not None
            else NoValue,
            "ServiceName": self.service_name if self.service_name else NoValue,
            "DeploymentConfiguration": define_deployment_options(self),
            "HealthCheckGracePeriodSeconds": self.health_check_grace_period
            if self.health_check_grace_period is not None
            else NoValue,
            "LaunchType": self.launch_type,
        }

    def render(self, template: Template) -> None:
        self.cfn_resource = Service(self.logical_id, **self.service_props())
        add_resource(template, self.cfn_resource)


class Ec2Service(BaseService):
    """
    Service running the tasks on the EC2 instances of the cluster.

    :ivar bool daemon: whether to run one task on each instance of the cluster
    :ivar list placement_constraints:
    :ivar list[PlacementStrategy] placement_strategies:
    """

    launch_type = EC2

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        task_definition: TaskDefinition,
        desired_count: int = 1,
        service_name: str = None,
        min_healthy_percent: int = None,
        max_healthy_percent: int = None,
        health_check_grace_period: int = None,
        circuit_breaker: bool = True,
        subnets: list = None,
        security_groups: list = None,
        daemon: bool = False,
        placement_constraints: list = None,
        placement_strategies: list = None,
    ):
        if not task_definition.is_ec2_compatible:
            raise IncompatibleOptions(
                "Supplied TaskDefinition is not configured for compatibility with EC2"
            )
        if daemon:
            desired_count = None
            if min_healthy_percent is None:
                min_healthy_percent = 0
            if max_healthy_percent is None:
                max_healthy_percent = 100
        super().__init__(
            scope,
            id,
            cluster,
            task_definition,
            desired_count=desired_count,
            service_name=service_name,
            min_healthy_percent=min_healthy_percent,
            max_healthy_percent=max_healthy_percent,
            health_check_grace_period=health_check_grace_period,
            circuit_breaker=circuit_breaker,
            subnets=subnets,
            security_groups=security_groups,
        )
        self.daemon = daemon
        self.placement_constraints = []
        self.placement_strategies = []
        if placement_constraints:
            for constraint in placement_constraints:
                self.add_placement_constraint(constraint)
        if placement_strategies:
            for strategy in placement_strategies:
                self.add_placement_strategy(strategy)

    def add_placement_constraint(self, constraint: PlacementConstraint) -> None:
        self.placement_constraints.append(constraint)

    def add_placement_strategy(self, strategy: PlacementStrategy) -> None:
        if self.daemon:
            raise IncompatibleOptions("Daemon mode services cannot have placement strategies")
        self.placement_strategies.append(strategy)

    def place_on_distinct_instances(self) -> None:
        self.add_placement_constraint(PlacementConstraint.distinct_instances())

    def place_on_member_of(self, *expressions: str) -> None:
        self.add_placement_constraint(PlacementConstraint.member_of(*expressions))

    def place_spread_across(self, *fields: str) -> None:
        self.add_placement_strategy(PlacementStrategy.spread_across(*fields))

    def place_packed_by(self, resource: str) -> None:
        """
        :param str resource: cpu or memory
        """
        if resource == "cpu":
            self.add_placement_strategy(PlacementStrategy.packed_by_cpu())
        elif resource == "memory":
            self.add_placement_strategy(PlacementStrategy.packed_by_memory())
        else:
            raise ValueError(
                f"Can only pack by cpu or memory. Got {resource}"
            )

    def place_randomly(self) -> None:
        self.add_placement_strategy(PlacementStrategy.randomly())

    def prepare(self) -> None:
        self.metadata.reset(CAPACITY_ORIGIN)
        if not isinstance(self.cluster, ImportedCluster) and not self.cluster.has_ec2_capacity:
            self.metadata.add_warning(
                f"Cluster {self.cluster.path} has no EC2 capacity. Tasks will not be placed until capacity is added",
                origin=CAPACITY_ORIGIN,
            )

    def service_props(self) -> dict:
        props = super().service_props()
        strategies = []
        if not self.daemon:
            for strategy in (
                self.placement_strategies
                if self.placement_strategies
                else define_placement_strategies()
            ):
                strategies += strategy.to_cfn()
        constraints = []
        for constraint in self.placement_constraints:
            constraints += constraint.to_service_constraints()
        props.update(
            {
                "SchedulingStrategy": "DAEMON" if self.daemon else "REPLICA",
                "PlacementStrategies": strategies if strategies else NoValue,
                "PlacementConstraints": constraints if constraints else NoValue,
                "NetworkConfiguration": self.network_configuration(),
            }
        )
        return props

    def render(self, template: Template) -> None:
        props = self.service_props()
        if self.cluster.capacities and self.cluster.stack is self.stack:
            props["DependsOn"] = [
                f"{capacity.logical_id}AutoScalingGroup"
                for capacity in self.cluster.capacities
            ]
        self.cfn_resource = Service(self.logical_id, **props)
        add_resource(template, self.cfn_resource)


class FargateService(BaseService):
    """
    Service running the tasks on AWS Fargate.

    :ivar str platform_version:
    :ivar bool assign_public_ip:
    """

    launch_type = FARGATE

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        task_definition: TaskDefinition,
        desired_count: int = 1,
        service_name: str = None,
        min_healthy_percent: int = None,
        max_healthy_percent: int = None,
        health_check_grace_period: int = None,
        circuit_breaker: bool = True,
        subnets: list = None,
        security_groups: list = None,
        assign_public_ip: bool = False,
        platform_version: str = "LATEST",
    ):
        if not task_definition.is_fargate_compatible:
            raise IncompatibleOptions(
                "Supplied TaskDefinition is not configured for compatibility with Fargate"
            )
        if platform_version not in FARGATE_PLATFORM_VERSIONS:
            raise ValueError(
                f"Platform version {platform_version} is invalid. Must be one of",
                FARGATE_PLATFORM_VERSIONS,
            )
        if not subnets and not cluster.subnets:
            raise ValueError(
                f"{id} - Subnets must be set on the service or the cluster to run on Fargate"
            )
        super().__init__(
            scope,
            id,
            cluster,
            task_definition,
            desired_count=desired_count,
            service_name=service_name,
            min_healthy_percent=min_healthy_percent,
            max_healthy_percent=max_healthy_percent,
            health_check_grace_period=health_check_grace_period,
            circuit_breaker=circuit_breaker,
            subnets=subnets,
            security_groups=security_groups,
        )
        self.assign_public_ip = assign_public_ip
        self.platform_version = platform_version

    def service_props(self) -> dict:
        props = super().service_props()
        props.update(
            {
                "PlatformVersion": self.platform_version,
                "NetworkConfiguration": self.network_configuration(
                    self.assign_public_ip
                ),
            }
        )
        return props
