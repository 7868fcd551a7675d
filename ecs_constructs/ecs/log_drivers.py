#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Log drivers for the containers. Only awslogs is supported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.task_definition import TaskDefinition

from troposphere import GetAtt, NoValue, Ref, Region, Template
from troposphere.ecs import LogConfiguration
from troposphere.logs import LogGroup

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.troposphere_tools import add_resource
from ecs_constructs.iam.iam_role import policy_statement

RETENTION_DAYS = [
    1,
    3,
    5,
    7,
    14,
    30,
    60,
    90,
    120,
    150,
    180,
    365,
    400,
    545,
    731,
    1827,
    3653,
]


class AwsLogDriver(Construct):
    """
    Creates a CloudWatch log group and sends the container logs to it using awslogs driver.

    :ivar str stream_prefix: prefix of the log streams, mandatory with Fargate
    :ivar int log_retention_days:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        stream_prefix: str,
        log_retention_days: int = None,
        log_group_name: str = None,
    ):
        super().__init__(scope, id)
        if not stream_prefix:
            raise ValueError(f"{self.path} - stream_prefix must be set")
        if log_retention_days is not None and log_retention_days not in RETENTION_DAYS:
            raise ValueError(
                f"{self.path} - log retention {log_retention_days} is invalid. Must be one of",
                RETENTION_DAYS,
            )
        self.stream_prefix = stream_prefix
        self.log_retention_days = log_retention_days
        self.log_group_name = log_group_name
        self.log_group = None

    @property
    def log_group_ref(self) -> Ref:
        return Ref(self.logical_id)

    def bind(self, task_definition: TaskDefinition) -> None:
        """
        Allows the task execution role to create the streams and send logs to the log group
        """
        task_definition.obtain_execution_role().add_to_policy(
            policy_statement(
                ["logs:CreateLogStream", "logs:PutLogEvents"],
                GetAtt(self.logical_id, "Arn"),
            )
        )

    def render_log_configuration(self) -> LogConfiguration:
        return LogConfiguration(
            LogDriver="awslogs",
            Options={
                "awslogs-group": self.log_group_ref,
                "awslogs-region": Region,
                "awslogs-stream-prefix": self.stream_prefix,
            },
        )

    def render(self, template: Template) -> None:
        self.log_group = LogGroup(
            self.logical_id,
            LogGroupName=self.log_group_name if self.log_group_name else NoValue,
            RetentionInDays=self.log_retention_days
            if self.log_retention_days
            else NoValue,
        )
        add_resource(template, self.log_group)
