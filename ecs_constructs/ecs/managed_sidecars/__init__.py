#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Sidecar containers managed by the library and added to the task definitions on demand.
"""
