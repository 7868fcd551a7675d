#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises

from ecs_constructs.common.construct import App, Stack
from ecs_constructs.common.lazy import Lazy
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.placement import PlacementConstraint
from ecs_constructs.ecs.task_definition import FargateTaskDefinition
from ecs_constructs.exceptions import IncompatibleOptions
from ecs_constructs.iam.iam_role import Role

SAMPLE_IMAGE = ContainerImage.from_registry("amazon/amazon-ecs-sample")


@fixture()
def stack():
    return Stack(App(), "TestStack")


def get_properties(stack, logical_id):
    template = stack.synthesize()
    return template.to_dict()["Resources"][logical_id]["Properties"]


def test_default_properties(stack):
    FargateTaskDefinition(stack, "FargateTaskDef")
    props = get_properties(stack, "FargateTaskDef")
    assert props["Family"] == "FargateTaskDef"
    assert props["NetworkMode"] == "awsvpc"
    assert props["RequiresCompatibilities"] == ["FARGATE"]
    assert props["Cpu"] == "256"
    assert props["Memory"] == "512"
    assert props["TaskRoleArn"] == {"Fn::GetAtt": ["FargateTaskDefTaskRole", "Arn"]}


def test_warn_container_cpu_greater_than_task_cpu(stack):
    task_definition = FargateTaskDefinition(stack, "FargateTaskDef", cpu=1)
    task_definition.add_container("web", SAMPLE_IMAGE, cpu=4)
    stack.synthesize()
    assert (
        task_definition.metadata[0].data
        == "CPU specified for the container cannot be greater than the CPU for the task definition"
    )


def test_warn_total_memory_greater_than_task_memory(stack):
    task_definition = FargateTaskDefinition(stack, "FargateTaskDef", memory_mib=100)
    task_definition.add_container("web", SAMPLE_IMAGE, memory_limit_mib=50)
    task_definition.add_container("frontend", SAMPLE_IMAGE, memory_limit_mib=51)
    task_definition.add_container("backend", SAMPLE_IMAGE, memory_limit_mib=1)
    stack.synthesize()
    total_warning = "Total memory specified for all containers cannot be greater than the memory for the task definition"
    assert task_definition.metadata[0].data == total_warning
    assert task_definition.metadata[1].data == total_warning
    assert task_definition.metadata[2].data == total_warning
    assert len(task_definition.metadata) == 3


def test_warn_container_memory_greater_than_task_memory(stack):
    task_definition = FargateTaskDefinition(stack, "FargateTaskDef", memory_mib=1)
    task_definition.add_container("web", SAMPLE_IMAGE, memory_limit_mib=4)
    stack.synthesize()
    assert (
        task_definition.metadata[0].data
        == "Memory specified for the container cannot be greater than the memory for the task definition"
    )


def test_warn_container_memory_and_cpu_greater_than_task(stack):
    task_definition = FargateTaskDefinition(
        stack, "FargateTaskDef", cpu=1, memory_mib=1
    )
    task_definition.add_container("web", SAMPLE_IMAGE, cpu=4, memory_limit_mib=4)
    stack.synthesize()
    assert (
        task_definition.metadata[0].data
        == "CPU specified for the container cannot be greater than the CPU for the task definition"
    )
    assert (
        task_definition.metadata[1].data
        == "Memory specified for the container cannot be greater than the memory for the task definition"
    )


def test_warnings_do_not_pile_up(stack):
    task_definition = FargateTaskDefinition(
        stack, "FargateTaskDef", cpu=1, memory_mib=1
    )
    task_definition.add_container("web", SAMPLE_IMAGE, cpu=4, memory_limit_mib=4)
    stack.synthesize()
    first = list(task_definition.metadata.warnings)
    stack.synthesize()
    assert task_definition.metadata.warnings == first
    assert stack.warnings == [f"[TestStack/FargateTaskDef] {warning}" for warning in first]


def test_lazy_cpu_and_memory(stack):
    cpu = Lazy(lambda: 128)
    memory = Lazy(lambda: 1024)
    FargateTaskDefinition(stack, "FargateTaskDef", cpu=cpu, memory_mib=memory)
    assert not cpu.resolved
    assert not memory.resolved
    props = get_properties(stack, "FargateTaskDef")
    assert cpu.resolved
    assert props["Cpu"] == "128"
    assert props["Memory"] == "1024"


def test_lazy_values_are_resolved_once(stack):
    calls = []

    def producer():
        calls.append(1)
        return 512

    FargateTaskDefinition(stack, "FargateTaskDef", cpu=Lazy(producer))
    stack.synthesize()
    stack.synthesize()
    assert len(calls) == 1


def test_all_properties(stack):
    execution_role = Role(stack, "ExecutionRole", ["ecs", "ecs-tasks"], path="/")
    task_role = Role(stack, "TaskRole", "ecs-tasks")
    task_definition = FargateTaskDefinition(
        stack,
        "FargateTaskDef",
        cpu=128,
        memory_mib=1024,
        family="myApp",
        execution_role=execution_role,
        task_role=task_role,
    )
    task_definition.add_volume("scratch", host_source_path="/tmp/cache")
    props = get_properties(stack, "FargateTaskDef")
    assert props["Cpu"] == "128"
    assert props["Memory"] == "1024"
    assert props["Family"] == "myApp"
    assert props["NetworkMode"] == "awsvpc"
    assert props["RequiresCompatibilities"] == ["FARGATE"]
    assert props["ExecutionRoleArn"] == {"Fn::GetAtt": ["ExecutionRole", "Arn"]}
    assert props["TaskRoleArn"] == {"Fn::GetAtt": ["TaskRole", "Arn"]}
    assert props["Volumes"] == [{"Host": {"SourcePath": "/tmp/cache"}, "Name": "scratch"}]


def test_memory_units(stack):
    task_definition = FargateTaskDefinition(
        stack, "FargateTaskDef", cpu="512", memory_mib="1GB"
    )
    assert task_definition.task_compute.family_ram == 1024
    props = get_properties(stack, "FargateTaskDef")
    assert props["Cpu"] == "512"
    assert props["Memory"] == "1024"


def test_invalid_compute_values(stack):
    with raises(ValueError):
        FargateTaskDefinition(stack, "Zero", cpu=0)
    with raises(TypeError):
        FargateTaskDefinition(stack, "Bool", memory_mib=True)
    with raises(ValueError):
        FargateTaskDefinition(stack, "Units", memory_mib="lots")


def test_throws_when_adding_placement_constraint(stack):
    task_definition = FargateTaskDefinition(stack, "FargateTaskDef")
    with raises(
        IncompatibleOptions,
        match="Cannot set placement constraints on tasks that run on Fargate",
    ):
        task_definition.add_placement_constraint(
            PlacementConstraint.member_of("attribute:ecs.instance-type =~ t2.*")
        )
    assert task_definition.placement_constraints == []
    props = get_properties(stack, "FargateTaskDef")
    assert props["PlacementConstraints"] == {"Ref": "AWS::NoValue"}


def test_ecr_image_creates_execution_role(stack):
    task_definition = FargateTaskDefinition(stack, "FargateTaskDef")
    assert task_definition.execution_role is None
    task_definition.add_container(
        "app", ContainerImage.from_ecr_repository("my-app", "v1")
    )
    template = stack.synthesize().to_dict()
    props = template["Resources"]["FargateTaskDef"]["Properties"]
    assert props["ExecutionRoleArn"] == {
        "Fn::GetAtt": ["FargateTaskDefExecutionRole", "Arn"]
    }
    role = template["Resources"]["FargateTaskDefExecutionRole"]["Properties"]
    actions = [
        action
        for statement in role["Policies"][0]["PolicyDocument"]["Statement"]
        for action in statement["Action"]
    ]
    assert "ecr:BatchGetImage" in actions
    assert "ecr:GetAuthorizationToken" in actions
