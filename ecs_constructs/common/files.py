#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to write the synthesized templates to the local filesystem
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_constructs.common.settings import ConstructsSettings

from os import makedirs
from os.path import abspath

from troposphere import Template

from ecs_constructs.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"


class FileArtifact:
    """
    Class to handle files artifacts, here the CloudFormation templates.

    :cvar str body: The content of the FileArtifact
    :cvar troposphere.Template template: the CFN template
    :cvar str file_name: the base name of the file
    :cvar str mime: MIME-type of the file
    :cvar str file_path: Output file path for the FileArtifact
    """

    mime = "text/plain"
    file_path = None

    def __init__(
        self,
        file_name: str,
        settings: ConstructsSettings,
        file_format: str = None,
        template: Template = None,
    ):
        if file_format is None:
            file_format = settings.format
        if not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        if not isinstance(file_format, str):
            raise TypeError("format is of type", type(file_format), "expected", str)
        self.template = template
        self.body = None
        self.define_file_specs(file_name, file_format)
        self.file_path = f"{settings.output_dir}/{self.file_name}"

    def __repr__(self):
        return self.file_path

    def define_file_specs(self, file_name: str, file_format: str) -> None:
        """
        Sets the file name extension and MIME type from the format
        """
        if file_format == "yaml":
            self.mime = YAML_MIME
            extension = "yml"
        elif file_format == "json":
            self.mime = JSON_MIME
            extension = "json"
        else:
            raise ValueError(f"Format {file_format} is not supported")
        if not file_name.endswith(f".{extension}"):
            file_name = f"{file_name}.{extension}"
        self.file_name = file_name

    def define_body(self) -> str:
        """
        Method to define the body of the file artifact from the template.
        """
        if self.mime == YAML_MIME:
            self.body = self.template.to_yaml()
        else:
            self.body = self.template.to_json()
        return self.body

    def write(self, settings: ConstructsSettings) -> None:
        """
        Method to write the files to local filesystem based on parameters (directory name etc.)
        """
        if self.body is None:
            self.define_body()
        makedirs(settings.output_dir, exist_ok=True)
        with open(self.file_path, "w") as template_fd:
            template_fd.write(self.body)
        LOG.info(
            f"Template {self.file_name} written successfully at {abspath(self.file_path)}"
        )
