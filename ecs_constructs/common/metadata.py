#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Diagnostics attached to constructs, surfaced to the user once the templates are synthesized.
"""

from __future__ import annotations

from dataclasses import dataclass

from ecs_constructs.common.logging import LOG

INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class MetadataEntry:
    type: str
    data: str
    origin: str = None


class ConstructMetadata:
    """
    Ordered log of the diagnostic messages of a construct.

    :ivar str path: path of the construct owning the log, used in the log messages
    :ivar list[MetadataEntry] entries:
    """

    def __init__(self, path: str):
        self.path = path
        self.entries = []

    def __len__(self):
        return len(self.entries)

    def __getitem__(self, index) -> MetadataEntry:
        return self.entries[index]

    def __iter__(self):
        return iter(self.entries)

    def add(self, entry_type: str, data: str, origin: str = None) -> MetadataEntry:
        entry = MetadataEntry(entry_type, data, origin)
        self.entries.append(entry)
        if entry_type == WARNING:
            LOG.warning(f"{self.path} - {data}")
        elif entry_type == ERROR:
            LOG.error(f"{self.path} - {data}")
        else:
            LOG.info(f"{self.path} - {data}")
        return entry

    def add_info(self, data: str, origin: str = None) -> MetadataEntry:
        return self.add(INFO, data, origin)

    def add_warning(self, data: str, origin: str = None) -> MetadataEntry:
        return self.add(WARNING, data, origin)

    def add_error(self, data: str, origin: str = None) -> MetadataEntry:
        return self.add(ERROR, data, origin)

    def reset(self, origin: str) -> None:
        """
        Removes all the entries recorded by the given origin, so that re-running a validation
        does not pile up the same messages.
        """
        self.entries = [entry for entry in self.entries if entry.origin != origin]

    @property
    def warnings(self) -> list[str]:
        return [entry.data for entry in self.entries if entry.type == WARNING]

    @property
    def errors(self) -> list[str]:
        return [entry.data for entry in self.entries if entry.type == ERROR]
