#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Constructs for AWS ECS: clusters, task definitions, containers and services.
"""
