#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from behave import given, then

from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.events.scheduled_task import ScheduledEc2Task
from ecs_constructs.sqs.sqs_ecs import Ec2QueueWorkerService


@given("I want to run {image} every minute")
def step_impl(context, image):
    ScheduledEc2Task(
        context.stack,
        "ScheduledTask",
        context.cluster,
        ContainerImage.from_registry(image),
        "rate(1 minute)",
        memory_limit_mib=256,
    )


@given("I want a service processing the messages of a queue with {image}")
def step_impl(context, image):
    Ec2QueueWorkerService(
        context.stack,
        "Worker",
        context.cluster,
        ContainerImage.from_registry(image),
        memory_limit_mib=512,
    )


@then("the stack should output {output_name}")
def step_impl(context, output_name):
    assert output_name in context.template.to_dict()["Outputs"]
