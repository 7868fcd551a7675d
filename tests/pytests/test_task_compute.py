#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import raises

from ecs_constructs.common.metadata import ConstructMetadata
from ecs_constructs.ecs.task_compute.helpers import (
    CPU_EXCEEDED,
    MEMORY_EXCEEDED,
    TOTAL_MEMORY_EXCEEDED,
    ContainerRequest,
    check_resource_budget,
)


def test_cpu_budget():
    containers = [
        ContainerRequest("web", cpu=512),
        ContainerRequest("worker", cpu=1024),
        ContainerRequest("sidecar"),
    ]
    assert check_resource_budget(1024, None, containers) == []
    assert check_resource_budget(512, None, containers) == [CPU_EXCEEDED]
    assert check_resource_budget(256, None, containers) == [CPU_EXCEEDED, CPU_EXCEEDED]


def test_unbounded_task():
    containers = [ContainerRequest("web", cpu=4096, memory_limit_mib=8192)]
    assert check_resource_budget(None, None, containers) == []


def test_container_memory_limit_above_task_memory():
    """
    The memory warning of the container comes on top of the total memory one
    """
    containers = [ContainerRequest("web", memory_limit_mib=4)]
    assert check_resource_budget(None, 1, containers) == [
        MEMORY_EXCEEDED,
        TOTAL_MEMORY_EXCEEDED,
    ]


def test_memory_reservation_only_counts_in_total():
    containers = [
        ContainerRequest("web", memory_reservation_mib=80),
        ContainerRequest("worker", memory_reservation_mib=40),
    ]
    assert check_resource_budget(None, 100, containers) == [
        TOTAL_MEMORY_EXCEEDED,
        TOTAL_MEMORY_EXCEEDED,
    ]


def test_total_memory_uses_largest_value_per_container():
    containers = [
        ContainerRequest("web", memory_limit_mib=40, memory_reservation_mib=60),
        ContainerRequest("worker", memory_limit_mib=40),
    ]
    assert check_resource_budget(None, 100, containers) == []
    containers.append(ContainerRequest("extra", memory_reservation_mib=1))
    assert check_resource_budget(None, 100, containers) == [TOTAL_MEMORY_EXCEEDED] * 3


def test_total_memory_warns_for_each_container_with_memory():
    """
    Sum is 102 for a task of 100 MiB. Every container declaring memory gets the warning,
    the one without memory does not.
    """
    containers = [
        ContainerRequest("web", memory_limit_mib=50),
        ContainerRequest("frontend", memory_limit_mib=51),
        ContainerRequest("nomem", cpu=10),
        ContainerRequest("backend", memory_limit_mib=1),
    ]
    assert check_resource_budget(None, 100, containers) == [TOTAL_MEMORY_EXCEEDED] * 3


def test_warnings_order():
    containers = [
        ContainerRequest("web", cpu=4, memory_limit_mib=4),
        ContainerRequest("worker", cpu=4),
    ]
    assert check_resource_budget(1, 1, containers) == [
        CPU_EXCEEDED,
        CPU_EXCEEDED,
        MEMORY_EXCEEDED,
        TOTAL_MEMORY_EXCEEDED,
    ]


def test_check_is_idempotent():
    containers = [
        ContainerRequest("web", cpu=4, memory_limit_mib=50),
        ContainerRequest("frontend", memory_limit_mib=51),
    ]
    assert check_resource_budget(1, 100, containers) == check_resource_budget(
        1, 100, containers
    )


def test_container_request_is_immutable():
    request = ContainerRequest("web", cpu=1)
    with raises(AttributeError):
        request.cpu = 2


def test_metadata_reset():
    metadata = ConstructMetadata("Stack/TaskDef")
    metadata.add_info("something")
    metadata.add_warning("first", origin="check")
    metadata.add_warning("second", origin="check")
    assert metadata.warnings == ["first", "second"]
    metadata.reset("check")
    assert len(metadata) == 1
    assert metadata[0].data == "something"
    assert metadata.warnings == []
