"""Profile store: the list of touch profiles, the selection, and YAML persistence"""
import logging
import os
from typing import List, Optional

import yaml

from touchbridge.core.descriptor import EventDescriptor
from touchbridge.core.state import DEVICE_HEIGHT, DEVICE_WIDTH, Binding, Profile

LOG = logging.getLogger("touchbridge.profiles")

DEFAULT_PROFILE_NAME = "default"


def binding_to_text(binding: Binding) -> str:
    desc = binding.descriptor.copy()
    desc.set("x", binding.x)
    desc.set("y", binding.y)
    return desc.serialize()


def binding_from_text(text: str, width: int = DEVICE_WIDTH, height: int = DEVICE_HEIGHT) -> Binding:
    desc = EventDescriptor.parse(text)
    x = desc.get("x", 0)
    y = desc.get("y", 0)
    desc.erase("x")
    desc.erase("y")
    binding = Binding(desc)
    binding.place(x, y, width, height)
    return binding


class ProfileStore:
    """Ordered, never-empty list of profiles with one of them selected."""

    def __init__(self, profiles: Optional[List[Profile]] = None, selected_index: int = 0):
        self.profiles: List[Profile] = list(profiles or [])
        if not self.profiles:
            self.profiles.append(Profile(DEFAULT_PROFILE_NAME))
        self.selected_index = selected_index if 0 <= selected_index < len(self.profiles) else 0

    def _valid(self, index: int) -> bool:
        return 0 <= index < len(self.profiles)

    @property
    def selected(self) -> Profile:
        return self.profiles[self.selected_index]

    def create_profile(self, name: str) -> int:
        self.profiles.append(Profile(name))
        self.selected_index = len(self.profiles) - 1
        LOG.info("created profile %r at index %d", name, self.selected_index)
        return self.selected_index

    def delete_profile(self, index: int) -> bool:
        if len(self.profiles) <= 1:
            LOG.debug("refusing to delete the last profile")
            return False
        if not self._valid(index):
            LOG.warning("delete_profile: no profile at index %d", index)
            return False
        removed = self.profiles.pop(index)
        self.selected_index = 0
        LOG.info("deleted profile %r", removed.name)
        return True

    def rename_profile(self, index: int, name: str) -> bool:
        if not self._valid(index):
            LOG.warning("rename_profile: no profile at index %d", index)
            return False
        self.profiles[index].name = name
        return True

    def select_profile(self, index: int) -> bool:
        """Switch the selection. Pending edits must be flushed by the caller first."""
        if not self._valid(index):
            LOG.warning("select_profile: no profile at index %d", index)
            return False
        self.selected_index = index
        return True

    def get_bindings(self, index: int) -> List[Binding]:
        if not self._valid(index):
            return []
        return self.profiles[index].bindings

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "selected": self.selected_index,
            "profiles": [
                {
                    "name": p.name,
                    "bindings": [binding_to_text(b) for b in p.bindings if b.descriptor.is_bound],
                }
                for p in self.profiles
            ],
        }

    @classmethod
    def from_dict(cls, data: dict, width: int = DEVICE_WIDTH, height: int = DEVICE_HEIGHT):
        profiles = []
        for entry in (data or {}).get("profiles") or []:
            name = str(entry.get("name", DEFAULT_PROFILE_NAME))
            bindings = []
            for text in entry.get("bindings") or []:
                binding = binding_from_text(str(text), width, height)
                if not binding.descriptor.is_bound:
                    LOG.warning("dropping unbound binding %r in profile %r", text, name)
                    continue
                bindings.append(binding)
            profiles.append(Profile(name, bindings))
        selected = (data or {}).get("selected", 0)
        return cls(profiles, int(selected) if isinstance(selected, int) else 0)

    @classmethod
    def load(cls, path: str, width: int = DEVICE_WIDTH, height: int = DEVICE_HEIGHT):
        if not os.path.exists(path):
            LOG.info("no profile file at %s, starting with a default profile", path)
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        store = cls.from_dict(data, width, height)
        LOG.info("loaded %d profile(s) from %s", len(store.profiles), path)
        return store

    def save(self, path: str, extra: Optional[dict] = None):
        """Write profiles to `path`, keeping `extra` top-level sections (settings)."""
        data = dict(extra or {})
        data.update(self.to_dict())
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        LOG.info("saved %d profile(s) to %s", len(self.profiles), path)
