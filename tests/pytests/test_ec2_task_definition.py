#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises

from ecs_constructs.common.construct import App, Stack
from ecs_constructs.ecs.container_image import ContainerImage
from ecs_constructs.ecs.ecs_container import PortMapping
from ecs_constructs.ecs.log_drivers import AwsLogDriver
from ecs_constructs.ecs.placement import PlacementConstraint
from ecs_constructs.ecs.task_definition import Ec2TaskDefinition, TaskDefinition
from ecs_constructs.exceptions import IncompatibleOptions, ValidationError

SAMPLE_IMAGE = ContainerImage.from_registry("amazon/amazon-ecs-sample")


@fixture()
def stack():
    return Stack(App(), "TestStack")


def test_default_properties(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    task_definition.add_container("web", SAMPLE_IMAGE, memory_limit_mib=512)
    props = stack.synthesize().to_dict()["Resources"]["TaskDef"]["Properties"]
    assert props["NetworkMode"] == "bridge"
    assert props["RequiresCompatibilities"] == ["EC2"]
    assert "Cpu" not in props or props["Cpu"] == {"Ref": "AWS::NoValue"}
    assert props["ContainerDefinitions"][0]["Name"] == "web"
    assert props["ContainerDefinitions"][0]["Memory"] == 512
    assert props["ContainerDefinitions"][0]["Essential"] is True


def test_compatibility_checks(stack):
    with raises(ValueError):
        TaskDefinition(stack, "Invalid", "LAMBDA")
    with raises(IncompatibleOptions):
        TaskDefinition(stack, "Both", "EC2_AND_FARGATE", network_mode="bridge")
    task_definition = TaskDefinition(stack, "Dual", "EC2_AND_FARGATE")
    assert task_definition.network_mode == "awsvpc"
    assert task_definition.is_ec2_compatible
    assert task_definition.is_fargate_compatible


def test_placement_constraints(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    task_definition.add_placement_constraint(
        PlacementConstraint.member_of("attribute:ecs.instance-type =~ t2.*")
    )
    with raises(ValueError):
        task_definition.add_placement_constraint(
            PlacementConstraint.distinct_instances()
        )
    task_definition.add_container("web", SAMPLE_IMAGE, memory_limit_mib=512)
    props = stack.synthesize().to_dict()["Resources"]["TaskDef"]["Properties"]
    assert props["PlacementConstraints"] == [
        {"Type": "memberOf", "Expression": "attribute:ecs.instance-type =~ t2.*"}
    ]


def test_placement_constraints_on_dual_compatibility(stack):
    for compatibility in ["EC2_AND_FARGATE", "FARGATE"]:
        with raises(IncompatibleOptions):
            TaskDefinition(
                stack,
                "TaskDef",
                compatibility,
                placement_constraints=[
                    PlacementConstraint.member_of("attribute:ecs.instance-type =~ t2.*")
                ],
            )
    assert stack.children == []
    assert not stack.synthesize().to_dict().get("Resources")


def test_container_settings(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    container = task_definition.add_container(
        "web",
        SAMPLE_IMAGE,
        memory_reservation_mib=128,
        command="python,-m,http.server",
        environment={"STAGE": "dev", "PORT": 8000},
    )
    container.add_port_mappings(PortMapping(8000, 80))
    task_definition.add_volume("scratch")
    container.add_mount_points(
        {"source_volume": "scratch", "container_path": "/tmp", "read_only": True}
    )
    container.add_ulimits({"name": "nofile", "soft_limit": 1024, "hard_limit": 4096})
    definition = stack.synthesize().to_dict()["Resources"]["TaskDef"]["Properties"][
        "ContainerDefinitions"
    ][0]
    assert definition["Command"] == ["python", "-m", "http.server"]
    assert definition["Environment"] == [
        {"Name": "STAGE", "Value": "dev"},
        {"Name": "PORT", "Value": "8000"},
    ]
    assert definition["MemoryReservation"] == 128
    assert definition["PortMappings"] == [
        {"ContainerPort": 8000, "HostPort": 80, "Protocol": "tcp"}
    ]
    assert definition["MountPoints"] == [
        {"SourceVolume": "scratch", "ContainerPath": "/tmp", "ReadOnly": True}
    ]
    assert definition["Ulimits"] == [
        {"Name": "nofile", "SoftLimit": 1024, "HardLimit": 4096}
    ]


def test_legacy_environment_pair(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    container = task_definition.add_container(
        "web",
        SAMPLE_IMAGE,
        memory_limit_mib=512,
        environment={"name": "TRIGGER", "value": "CloudWatch Events"},
    )
    assert [env.to_dict() for env in container.environment] == [
        {"Name": "TRIGGER", "Value": "CloudWatch Events"}
    ]


def test_container_errors(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    with raises(ValueError):
        task_definition.add_container(
            "web", SAMPLE_IMAGE, memory_limit_mib=128, memory_reservation_mib=256
        )
    with raises(ValueError):
        task_definition.add_container("negative", SAMPLE_IMAGE, cpu=-1)
    with raises(TypeError):
        task_definition.add_container("noimage", "nginx")
    task_definition.add_container("app", SAMPLE_IMAGE, memory_limit_mib=128)
    with raises(ValueError):
        task_definition.add_container("app", SAMPLE_IMAGE, memory_limit_mib=128)
    assert [container.name for container in task_definition.containers] == ["app"]


def test_awsvpc_port_mappings(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef", network_mode="awsvpc")
    container = task_definition.add_container("web", SAMPLE_IMAGE, memory_limit_mib=128)
    container.add_port_mappings(PortMapping(80))
    assert container.port_mappings[0].host_port == 80
    with raises(ValueError):
        container.add_port_mappings(PortMapping(8080, 80))
    with raises(ValueError):
        PortMapping(80, protocol="sctp")


def test_container_dependencies(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    app = task_definition.add_container("app", SAMPLE_IMAGE, memory_limit_mib=128)
    init = task_definition.add_container(
        "init", SAMPLE_IMAGE, memory_limit_mib=32, essential=False
    )
    app.add_container_dependencies(init, "SUCCESS")
    app.add_container_dependencies(init, "SUCCESS")
    with raises(ValueError):
        app.add_container_dependencies(init, "FINISHED")
    with raises(ValueError):
        app.add_container_dependencies(app)
    assert task_definition.default_container is app
    definitions = stack.synthesize().to_dict()["Resources"]["TaskDef"]["Properties"][
        "ContainerDefinitions"
    ]
    assert definitions[0]["DependsOn"] == [
        {"ContainerName": "init", "Condition": "SUCCESS"}
    ]


def test_no_essential_container(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    task_definition.add_container(
        "init", SAMPLE_IMAGE, memory_limit_mib=32, essential=False
    )
    with raises(ValidationError) as error:
        stack.synthesize()
    assert error.value.errors == [
        "[TestStack/TaskDef] A task definition must have at least one essential container"
    ]


def test_aws_log_driver(stack):
    task_definition = Ec2TaskDefinition(stack, "TaskDef")
    logging = AwsLogDriver(stack, "Logging", stream_prefix="web", log_retention_days=7)
    task_definition.add_container(
        "web", SAMPLE_IMAGE, memory_limit_mib=128, logging=logging
    )
    resources = stack.synthesize().to_dict()["Resources"]
    assert resources["Logging"]["Type"] == "AWS::Logs::LogGroup"
    assert resources["Logging"]["Properties"]["RetentionInDays"] == 7
    log_configuration = resources["TaskDef"]["Properties"]["ContainerDefinitions"][0][
        "LogConfiguration"
    ]
    assert log_configuration["LogDriver"] == "awslogs"
    assert log_configuration["Options"]["awslogs-group"] == {"Ref": "Logging"}
    assert log_configuration["Options"]["awslogs-stream-prefix"] == "web"
    assert "TaskDefExecutionRole" in resources
    with raises(ValueError):
        AwsLogDriver(stack, "BadRetention", stream_prefix="web", log_retention_days=2)
