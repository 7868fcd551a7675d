#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Task running on the EC2 instances of the cluster on schedule.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.container_image import ContainerImage
    from ecs_constructs.ecs.ecs_cluster import Cluster

from ecs_constructs.common.construct import Construct
from ecs_constructs.ecs.log_drivers import AwsLogDriver
from ecs_constructs.ecs.task_definition import Ec2TaskDefinition
from ecs_constructs.events import EventRule
from ecs_constructs.events.events_ecs import Ec2EventRuleTarget


class ScheduledEc2Task(Construct):
    """
    Creates the task definition with a single container logging to CloudWatch,
    and the event rule starting the tasks on schedule.

    :ivar Ec2TaskDefinition task_definition:
    :ivar ContainerDefinition container:
    :ivar Ec2EventRuleTarget target:
    :ivar EventRule event_rule:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        image: ContainerImage,
        schedule_expression: str,
        command=None,
        cpu: int = None,
        desired_task_count: int = 1,
        environment: dict = None,
        memory_limit_mib: int = None,
        memory_reservation_mib: int = None,
    ):
        super().__init__(scope, id)
        self.task_definition = Ec2TaskDefinition(self, "ScheduledTaskDef")
        self.container = self.task_definition.add_container(
            "ScheduledContainer",
            image,
            cpu=cpu,
            memory_limit_mib=memory_limit_mib,
            memory_reservation_mib=memory_reservation_mib,
            command=command,
            environment=environment,
            logging=AwsLogDriver(self, "ScheduledTaskLogging", stream_prefix=id),
        )
        self.target = Ec2EventRuleTarget(
            self,
            "ScheduledEventRuleTarget",
            cluster,
            self.task_definition,
            task_count=desired_task_count if desired_task_count is not None else 1,
        )
        self.event_rule = EventRule(
            self, "ScheduledEventRule", schedule_expression=schedule_expression
        )
        self.event_rule.add_target(self.target)
