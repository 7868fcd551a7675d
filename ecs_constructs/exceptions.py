#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-constructs
"""


class ConstructsBaseException(Exception):
    """
    Top class for ECS Constructs Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class IncompatibleOptions(ConstructsBaseException):
    """
    Exception when two settings conflict, i.e. when you try to set placement constraints on a Fargate task
    """


class ValidationError(ConstructsBaseException):
    """
    Exception raised at synthesis when constructs reported errors.

    :ivar list[str] errors: the errors, prefixed with the construct path
    """

    def __init__(self, msg, errors=None, *args):
        self.errors = errors if errors else []
        super().__init__(msg, *args)
