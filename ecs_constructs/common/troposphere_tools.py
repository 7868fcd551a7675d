#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Helper functions around troposphere Template
"""

from __future__ import annotations

from troposphere import AWSObject, Output, Parameter, Template

from ecs_constructs.common.logging import LOG


def build_template(description=None, *parameters) -> Template:
    """
    Creates a new template with optional description and parameters

    :param str description:
    :param list[Parameter] parameters:
    :rtype: troposphere.Template
    """
    template = Template(
        Description=description if description else "Template generated by ECS Constructs"
    )
    template.set_version()
    if parameters:
        add_parameters(template, list(parameters))
    return template


def add_parameters(template: Template, parameters: list[Parameter]) -> None:
    """
    Adds the parameters to the template, unless already defined.
    """
    for param in parameters:
        if not isinstance(param, Parameter):
            raise TypeError("Expected", Parameter, "got", type(param))
        if param.title not in template.parameters:
            template.add_parameter(param)


def add_resource(
    template: Template, resource: AWSObject, replace: bool = False
) -> AWSObject:
    """
    Adds the resource to the template.

    :param troposphere.Template template:
    :param resource:
    :param bool replace: Whether to override the resource if the title already exists
    :raises ValueError: If the resource already exists and replace is False
    """
    if resource.title not in template.resources:
        template.add_resource(resource)
    elif replace:
        LOG.debug(f"Replacing {resource.title} in template")
        template.resources[resource.title] = resource
    else:
        raise ValueError(f"Resource {resource.title} is already defined in template")
    return resource


def add_outputs(template: Template, outputs: list[Output]) -> None:
    """
    Adds the outputs to the template, replacing existing ones with the same title.
    """
    for output in outputs:
        if output.title in template.outputs:
            template.outputs[output.title] = output
        else:
            template.add_output(output)
