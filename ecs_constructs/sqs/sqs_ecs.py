#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to create a service on EC2 processing the messages of a new SQS Queue,
scaling on CPU usage and on the number of messages in the queue.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.ecs.container_image import ContainerImage
    from ecs_constructs.ecs.ecs_cluster import Cluster

from troposphere import Output, Template

from ecs_constructs.common.construct import Construct
from ecs_constructs.common.troposphere_tools import add_outputs
from ecs_constructs.ecs.ecs_service import Ec2Service
from ecs_constructs.ecs.log_drivers import AwsLogDriver
from ecs_constructs.ecs.task_definition import Ec2TaskDefinition
from ecs_constructs.sqs.sqs_queue import Queue

DEFAULT_SCALING_STEPS = [
    {"LowerBound": 1, "UpperBound": 10, "Count": 1},
    {"LowerBound": 10, "Count": 2},
]


class Ec2QueueWorkerService(Construct):
    """
    Service processing the messages of an SQS Queue

    :ivar Ec2TaskDefinition task_definition:
    :ivar ContainerDefinition container:
    :ivar Ec2Service service:
    :ivar Queue queue:
    :ivar ScalableTaskCount scaling:
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        cluster: Cluster,
        image: ContainerImage,
        command=None,
        cpu: int = None,
        desired_count: int = 1,
        enable_logging: bool = True,
        environment: dict = None,
        memory_limit_mib: int = None,
        memory_reservation_mib: int = None,
        queue_name: str = None,
        max_scaling_capacity: int = 2,
        scaling_steps: list = None,
    ):
        super().__init__(scope, id)
        self.task_definition = Ec2TaskDefinition(self, "QueueWorkerTaskDef")
        self.container = self.task_definition.add_container(
            "QueueWorkerContainer",
            image,
            cpu=cpu,
            memory_limit_mib=memory_limit_mib,
            memory_reservation_mib=memory_reservation_mib,
            command=command,
            environment=environment,
            logging=AwsLogDriver(self, "QueueWorkerLogging", stream_prefix=id)
            if enable_logging
            else None,
        )
        self.service = Ec2Service(
            self,
            "Service",
            cluster,
            self.task_definition,
            desired_count=desired_count if desired_count else 1,
        )
        self.queue = Queue(self, "EcsWorkerQueue", queue_name=queue_name)
        self.queue.grant_consume_messages(self.task_definition)

        self.scaling = self.service.auto_scale_task_count(
            max_capacity=max_scaling_capacity
        )
        self.scaling.scale_on_cpu_utilization(
            "CpuScaling",
            target_utilization_percent=50,
            scale_in_cooldown=60,
            scale_out_cooldown=60,
        )
        self.scaling.scale_on_metric(
            "QueueMessagesVisibleScaling",
            self.queue.metric_approximate_number_of_messages_visible(),
            scaling_steps if scaling_steps else DEFAULT_SCALING_STEPS,
            adjustment_type="ExactCapacity",
        )

    def render(self, template: Template) -> None:
        add_outputs(
            template,
            [
                Output(f"{self.logical_id}SQSQueue", Value=self.queue.queue_name_ref),
                Output(f"{self.logical_id}SQSQueueArn", Value=self.queue.queue_arn),
            ],
        )
