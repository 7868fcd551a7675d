#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Settings and CFN parameters bound to ecs_constructs.ecs

This is a crucial part as all the titles, marked `_T` are string which are then used the same way
across all imports, which gives consistency for CFN to use the same names,
which it heavily relies onto.
"""

from ecs_constructs.common.cfn_params import Parameter

ECS_COMPUTE_SETTINGS = "ECS Compute Settings"

EC2 = "EC2"
FARGATE = "FARGATE"
EC2_AND_FARGATE = "EC2_AND_FARGATE"
COMPATIBILITIES = {
    EC2: [EC2],
    FARGATE: [FARGATE],
    EC2_AND_FARGATE: [EC2, FARGATE],
}

AWS_VPC = "awsvpc"
BRIDGE = "bridge"
HOST = "host"
NONE = "none"
NETWORK_MODES = [AWS_VPC, BRIDGE, HOST, NONE]

TCP = "tcp"
UDP = "udp"
PROTOCOLS = [TCP, UDP]

CONTAINER_DEPENDENCY_CONDITIONS = ["START", "COMPLETE", "SUCCESS", "HEALTHY"]

FARGATE_DEFAULT_CPU = 256
FARGATE_DEFAULT_RAM = 512
FARGATE_PLATFORM_VERSIONS = ["LATEST", "1.4.0", "1.3.0"]

FARGATE_MODES = {
    256: [2**i for i in [9, 10, 11]],
    512: [(2**10) * i for i in range(1, 5)],
    1024: [(2**10) * i for i in range(2, 9)],
    2048: [(2**10) * i for i in range(4, 17)],
    4096: [(2**10) * i for i in range(8, 33)],
    8192: [(2**10) * i for i in range(16, 61, 4)],
    16384: [(2**10) * i for i in range(32, 121, 8)],
}

AWS_XRAY_IMAGE = "amazon/aws-xray-daemon"
XRAY_NAME = "xray-daemon"
XRAY_CPU = 32
XRAY_RAM = 256
XRAY_PORT = 2000
XRAY_POLICY = "AWSXRayDaemonWriteAccess"

ECS_AMI_ID_T = "EcsAmiId"
ECS_AMI_ID = Parameter(
    ECS_AMI_ID_T,
    group_label=ECS_COMPUTE_SETTINGS,
    Type="AWS::SSM::Parameter::Value<AWS::EC2::Image::Id>",
    Default="/aws/service/ecs/optimized-ami/amazon-linux-2/recommended/image_id",
)

ECS_HOSTS_MANAGED_POLICY = "service-role/AmazonEC2ContainerServiceforEC2Role"
ECS_EXECUTION_MANAGED_POLICY = "service-role/AmazonECSTaskExecutionRolePolicy"
