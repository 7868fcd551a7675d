#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the ConstructsSettings class
"""

from __future__ import annotations

from datetime import datetime as dt

from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_constructs.common.logging import LOG


def parse_context(context_args: list) -> dict:
    """
    Parses the key=value pairs given to the CLI into a dict

    :param list[str] context_args:
    :raises ValueError: if a pair is not in the key=value format
    """
    context = {}
    for context_arg in context_args:
        if not isinstance(context_arg, str) or "=" not in context_arg:
            raise ValueError(
                f"Context value {context_arg} is invalid. Expected key=value"
            )
        key, value = context_arg.split("=", 1)
        context[key.strip()] = value.strip()
    return context


class ConstructsSettings:
    """
    Class to handle the settings to use for ECS Constructs.

    :ivar str name: name of the application
    :ivar str format: format of the templates written
    :ivar str output_dir: directory the templates are written into
    :ivar dict context: key/values made available to the application callable
    """

    name_arg = "Name"
    command_arg = "command"
    synth_arg = "synth"
    app_arg = "AppCallable"
    context_arg = "Context"

    output_dir_arg = "OutputDirectory"
    format_arg = "TemplateFormat"
    default_format = "json"
    allowed_formats = ["json", "yaml"]

    default_name = "ecs-constructs"
    default_output_dir = f"/tmp/{dt.utcnow().strftime('%s')}"

    active_commands = [
        {
            "name": synth_arg,
            "help": "Synthesizes the application stacks into CFN templates written locally",
        },
    ]
    neutral_commands = [
        {"name": "version", "help": "ECS Constructs Version"},
    ]
    all_commands = active_commands + neutral_commands

    def __init__(self, **kwargs):
        self.name = set_else_none(self.name_arg, kwargs, alt_value=self.default_name)
        self.command = set_else_none(self.command_arg, kwargs)
        self.app_callable = set_else_none(self.app_arg, kwargs)
        self.output_dir = set_else_none(
            self.output_dir_arg, kwargs, alt_value=self.default_output_dir
        )
        self.format = self.default_format
        self.set_output_format(kwargs)
        self.context = {}
        if keyisset(self.context_arg, kwargs):
            if isinstance(kwargs[self.context_arg], dict):
                self.context.update(kwargs[self.context_arg])
            else:
                self.context.update(parse_context(kwargs[self.context_arg]))

    def __repr__(self):
        return f"{self.name} - {self.format} - {self.output_dir}"

    def set_output_format(self, kwargs: dict) -> None:
        """
        Sets the output format, if valid.

        :raises ValueError: if the format is not one of the allowed formats
        """
        if not keyisset(self.format_arg, kwargs):
            return
        template_format = kwargs[self.format_arg].lower()
        if template_format not in self.allowed_formats:
            raise ValueError(
                f"Format {template_format} is not valid. Must be one of",
                self.allowed_formats,
            )
        self.format = template_format
        LOG.debug(f"Templates will be rendered in {self.format}")
