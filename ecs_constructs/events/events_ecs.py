#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Targets running ECS tasks when the event rules trigger.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.ecs_cluster import Cluster
    from ecs_constructs.events import EventRule

from troposphere import Ref, Sub
from troposphere.events import EcsParameters, Target

from ecs_constructs.common.construct import Construct
from ecs_constructs.ecs.ecs_params import EC2
from ecs_constructs.ecs.task_definition import TaskDefinition
from ecs_constructs.exceptions import IncompatibleOptions
from ecs_constructs.iam.iam_role import Role, policy_statement


def define_events_role(target: Ec2EventRuleTarget) -> Role:
    """
    Role assumed by EventBridge to start the task in the cluster and pass the task roles to ECS.
    """
    role = Role(target, "EventsRole", "events")
    role.add_to_policy(
        policy_statement(
            "ecs:RunTask",
            Ref(target.task_definition.logical_id),
            Condition={"ArnLike": {"ecs:cluster": target.cluster.arn}},
        )
    )
    role.add_to_policy(
        policy_statement(
            "iam:PassRole",
            "*",
            Condition={
                "StringLike": {
                    "iam:PassedToService": Sub("ecs-tasks.${AWS::URLSuffix}")
                }
            },
        )
    )
    return role


class Ec2EventRuleTarget(Construct):
    """
    Runs the task definition on the EC2 instances of the cluster

    :ivar Cluster cluster:
    :ivar TaskDefinition task_definition:
    :ivar int task_count: number of tasks started each time the rule triggers
    :ivar Role role: the role EventBridge uses to run the task
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        task_definition: TaskDefinition,
        task_count: int = 1,
    ):
        if not task_definition.is_ec2_compatible:
            raise IncompatibleOptions(
                "Supplied TaskDefinition is not configured for compatibility with EC2"
            )
        if task_count < 1:
            raise ValueError(f"task_count must be at least 1. Got {task_count}")
        super().__init__(scope, id)
        self.cluster = cluster
        self.task_definition = task_definition
        self.task_count = task_count
        self.role = define_events_role(self)

    def bind(self, rule: EventRule) -> Target:
        return Target(
            Arn=self.cluster.arn,
            Id=self.logical_id,
            RoleArn=self.role.arn,
            EcsParameters=EcsParameters(
                LaunchType=EC2,
                TaskCount=self.task_count,
                TaskDefinitionArn=Ref(self.task_definition.logical_id),
            ),
        )
