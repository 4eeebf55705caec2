"""Settings sources for the layered configuration.

Each source contributes whole top-level sections (``logging``, ``storage``,
``web``); pydantic-settings deep-merges the sources in priority order.
"""

import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

from gradeflow.lib.util import merge_layers
from gradeflow.model import DeploymentEnvironment


class BootState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]
    override: t.Required[tuple[str, ...]]


# fields supplied at boot rather than read from a source
BootKeys = frozenset(BootState.__annotations__)


class SectionSource(PydanticBaseSettingsSource):
    def section(self, name: str) -> dict[str, t.Any] | None:
        raise NotImplementedError

    @property
    def boot_state(self) -> BootState:
        return t.cast(BootState, self.current_state)

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        return self.section(field_name), field_name, True

    def __call__(self) -> dict[str, t.Any]:
        sections: dict[str, t.Any] = {}
        for name in self.settings_cls.model_fields:
            if name in BootKeys:
                continue
            try:
                section = self.section(name)
            except yaml.YAMLError as e:
                raise SettingsError(f"could not parse {name!r} settings from {self!r}") from e
            if section is not None:
                sections[name] = section
        return sections


class OverrideSettingsSource(SectionSource):
    """``-o web.gradeflow.backend.port=9000`` style overrides; values are parsed as YAML."""

    @functools.cached_property
    def overrides(self) -> dict[str, t.Any]:
        tree: dict[str, t.Any] = {}
        for option in self.boot_state["override"]:
            if "=" not in option:
                raise SettingsError(f"override {option!r} is not of the form key.path=value")
            path, value = (s.strip() for s in option.split("=", 1))
            *parents, leaf = path.split(".")
            node = tree
            for key in parents:
                node = node.setdefault(key, {})
            node[leaf] = yaml.safe_load(value)
        return tree

    def section(self, name: str) -> dict[str, t.Any] | None:
        return self.overrides.get(name)


class YAMLCascadingSettingsSource(SectionSource):
    """``<root>/<section>.yaml`` with ``<root>/env.d/<env>/<section>.yaml`` merged over it."""

    @functools.cached_property
    def directories(self) -> tuple[Path, ...]:
        root = self.boot_state["root"]
        if root.scheme != "file" or root.path is None:
            raise SettingsError(f"config root {root} is not a local directory")
        env = self.boot_state["env"]
        base = Path(root.path)
        if env is DeploymentEnvironment.Local:
            return (base,)
        return (base, base / "env.d" / env.value)

    def section(self, name: str) -> dict[str, t.Any] | None:
        files = [d / f"{name}.yaml" for d in self.directories if (d / f"{name}.yaml").exists()]
        if not files:
            return None
        return merge_layers(*(yaml.safe_load(f.read_text(encoding="utf8")) or {} for f in files))
