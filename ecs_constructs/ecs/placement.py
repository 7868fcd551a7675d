#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Placement constraints and strategies for tasks running on EC2 instances.
"""

from __future__ import annotations

from troposphere.ecs import PlacementConstraint as CfnPlacementConstraint
from troposphere.ecs import PlacementStrategy as CfnPlacementStrategy

DISTINCT_INSTANCE = "distinctInstance"
MEMBER_OF = "memberOf"

INSTANCE_ID = "instanceId"
AVAILABILITY_ZONE = "attribute:ecs.availability-zone"


class PlacementConstraint:
    """
    Rule restricting the instances a task can be placed on.

    :ivar str type: distinctInstance or memberOf
    :ivar list[str] expressions: cluster query expressions, for memberOf
    """

    def __init__(self, constraint_type: str, expressions: list = None):
        if constraint_type not in [DISTINCT_INSTANCE, MEMBER_OF]:
            raise ValueError(
                f"Placement constraint type {constraint_type} is invalid. Expected one of",
                [DISTINCT_INSTANCE, MEMBER_OF],
            )
        if constraint_type == MEMBER_OF and not expressions:
            raise ValueError("memberOf constraints require at least one expression")
        self.type = constraint_type
        self.expressions = expressions if expressions else []

    def __repr__(self):
        return f"{self.type}({', '.join(self.expressions)})"

    @staticmethod
    def distinct_instances() -> PlacementConstraint:
        return PlacementConstraint(DISTINCT_INSTANCE)

    @staticmethod
    def member_of(*expressions: str) -> PlacementConstraint:
        return PlacementConstraint(MEMBER_OF, list(expressions))

    def to_service_constraints(self) -> list:
        if self.type == DISTINCT_INSTANCE:
            return [CfnPlacementConstraint(Type=DISTINCT_INSTANCE)]
        return [
            CfnPlacementConstraint(Type=MEMBER_OF, Expression=expression)
            for expression in self.expressions
        ]

    def to_task_definition_constraints(self) -> list:
        if self.type != MEMBER_OF:
            raise ValueError(
                f"Task definitions only support {MEMBER_OF} constraints. Got {self.type}"
            )
        return [
            CfnPlacementConstraint(Type=MEMBER_OF, Expression=expression)
            for expression in self.expressions
        ]


class PlacementStrategy:
    """
    How the tasks are placed onto the instances of the cluster.

    :ivar list[tuple[str, str]] strategies: list of (type, field)
    """

    def __init__(self, strategies: list):
        self.strategies = strategies

    def __repr__(self):
        return str(self.strategies)

    @staticmethod
    def spread_across(*fields: str) -> PlacementStrategy:
        if not fields:
            raise ValueError("spread_across requires at least one field")
        return PlacementStrategy([("spread", field) for field in fields])

    @staticmethod
    def spread_across_instances() -> PlacementStrategy:
        return PlacementStrategy([("spread", INSTANCE_ID)])

    @staticmethod
    def packed_by_cpu() -> PlacementStrategy:
        return PlacementStrategy([("binpack", "cpu")])

    @staticmethod
    def packed_by_memory() -> PlacementStrategy:
        return PlacementStrategy([("binpack", "memory")])

    @staticmethod
    def randomly() -> PlacementStrategy:
        return PlacementStrategy([("random", None)])

    def to_cfn(self) -> list:
        strategies = []
        for strategy_type, field in self.strategies:
            if field:
                strategies.append(CfnPlacementStrategy(Type=strategy_type, Field=field))
            else:
                strategies.append(CfnPlacementStrategy(Type=strategy_type))
        return strategies
