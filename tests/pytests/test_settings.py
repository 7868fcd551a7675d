#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import raises

from ecs_constructs.common.settings import ConstructsSettings, parse_context


def test_defaults():
    settings = ConstructsSettings()
    assert settings.name == "ecs-constructs"
    assert settings.format == "json"
    assert settings.output_dir == ConstructsSettings.default_output_dir
    assert settings.context == {}


def test_context():
    assert parse_context(["Env=prod", " Url = http://a?b=c "]) == {
        "Env": "prod",
        "Url": "http://a?b=c",
    }
    with raises(ValueError):
        parse_context(["Env"])
    settings = ConstructsSettings(Context={"Env": "dev"})
    assert settings.context == {"Env": "dev"}


def test_formats():
    assert ConstructsSettings(TemplateFormat="YAML").format == "yaml"
    with raises(ValueError):
        ConstructsSettings(TemplateFormat="xml")
