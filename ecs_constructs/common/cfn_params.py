#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
CFN Parameters with the interface label / group used when rendering the stacks.
"""

from troposphere import Parameter as CfnParameter


class Parameter(CfnParameter):
    """
    Parameter with a group label, used to sort the parameters in the CFN interface

    :ivar str group_label:
    :ivar str label: human friendly name of the parameter
    """

    def __init__(self, title, group_label=None, label=None, **kwargs):
        self.group_label = group_label if group_label else "Uncategorized parameters"
        self.label = label
        super().__init__(title, **kwargs)
