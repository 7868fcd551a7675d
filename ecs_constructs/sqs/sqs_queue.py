#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.task_definition import TaskDefinition

from troposphere import GetAtt, NoValue, Template
from troposphere.sqs import Queue as CfnQueue

from ecs_constructs.cloudwatch import Metric
from ecs_constructs.common.construct import Construct
from ecs_constructs.common.logging import LOG
from ecs_constructs.common.troposphere_tools import add_resource
from ecs_constructs.iam.iam_role import policy_statement

SQS_NAMESPACE = "AWS/SQS"

CONSUME_MESSAGES_ACTIONS = [
    "sqs:ReceiveMessage",
    "sqs:ChangeMessageVisibility",
    "sqs:GetQueueUrl",
    "sqs:DeleteMessage",
    "sqs:GetQueueAttributes",
]


class Queue(Construct):
    """
    SQS Queue

    :ivar str queue_name: name of the queue, generated by CFN if not set
    :ivar int visibility_timeout: in seconds
    :ivar bool fifo:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        queue_name: str = None,
        visibility_timeout: int = None,
        fifo: bool = False,
    ):
        if visibility_timeout is not None and not 0 <= visibility_timeout <= 43200:
            raise ValueError(
                f"visibility_timeout must be between 0 and 43200 seconds. Got {visibility_timeout}"
            )
        super().__init__(scope, id)
        if fifo and queue_name and not queue_name.endswith(".fifo"):
            LOG.warning(
                f"{self.path} - queue_name was defined and fifo set to true, but queue name was invalid. "
                f"Corrected to {queue_name}.fifo"
            )
            queue_name = f"{queue_name}.fifo"
        self.queue_name = queue_name
        self.visibility_timeout = visibility_timeout
        self.fifo = fifo
        self.cfn_resource = None

    @property
    def queue_name_ref(self) -> GetAtt:
        return GetAtt(self.logical_id, "QueueName")

    @property
    def queue_arn(self) -> GetAtt:
        return GetAtt(self.logical_id, "Arn")

    def metric(self, metric_name: str, statistic: str = "Average") -> Metric:
        return Metric(
            SQS_NAMESPACE,
            metric_name,
            {"QueueName": self.queue_name_ref},
            statistic=statistic,
        )

    def metric_approximate_number_of_messages_visible(self) -> Metric:
        return self.metric("ApproximateNumberOfMessagesVisible", "Maximum")

    def metric_approximate_number_of_messages_not_visible(self) -> Metric:
        return self.metric("ApproximateNumberOfMessagesNotVisible", "Maximum")

    def metric_number_of_messages_sent(self) -> Metric:
        return self.metric("NumberOfMessagesSent", "Sum")

    def grant_consume_messages(self, task_definition: TaskDefinition) -> None:
        """
        Allows the containers of the task definition to consume the messages of the queue
        """
        task_definition.add_to_task_role_policy(
            policy_statement(CONSUME_MESSAGES_ACTIONS, self.queue_arn)
        )

    def render(self, template: Template) -> None:
        self.cfn_resource = CfnQueue(
            self.logical_id,
            QueueName=self.queue_name if self.queue_name else NoValue,
            VisibilityTimeout=self.visibility_timeout
            if self.visibility_timeout is not None
            else NoValue,
            FifoQueue=True if self.fifo else NoValue,
        )
        add_resource(template, self.cfn_resource)
