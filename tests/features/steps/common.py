#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from behave import given, then
from pytest import raises

from ecs_constructs.common.construct import App, Stack
from ecs_constructs.common.settings import ConstructsSettings
from ecs_constructs.ecs.ecs_cluster import Cluster
from ecs_constructs.exceptions import ValidationError


@given("I have a new stack {stack_name}")
def step_impl(context, stack_name):
    context.app = App(
        ConstructsSettings(**{ConstructsSettings.name_arg: "test"})
    )
    context.stack = Stack(context.app, stack_name)


@given("I have a cluster with EC2 capacity")
def step_impl(context):
    context.cluster = Cluster(
        context.stack,
        "EcsCluster",
        vpc_id="vpc-1234abcd",
        subnets=["subnet-abcd1234", "subnet-efgh5678"],
    )
    context.cluster.add_capacity("DefaultAutoScalingGroup", instance_type="t2.micro")


@then("I synthesize the stack")
def step_impl(context):
    context.template = context.stack.synthesize()


@then("I should not be able to synthesize the stack")
def step_impl(context):
    with raises(ValidationError) as error:
        context.stack.synthesize()
    context.errors = error.value.errors


@then("the template should have resource {logical_id} of type {resource_type}")
def step_impl(context, logical_id, resource_type):
    resources = context.template.to_dict()["Resources"]
    assert logical_id in resources
    assert resources[logical_id]["Type"] == resource_type


@then("the stack should have {count:d} warnings")
def step_impl(context, count):
    assert len(context.stack.warnings) == count, context.stack.warnings
