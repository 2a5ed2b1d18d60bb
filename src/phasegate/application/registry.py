"""
ProjectTypeRegistry: explicit, injectable lookup of project types.

Populated once at start-up from an explicit list
(see ``phasegate.projects.default_registry``) and read-only afterwards.
"""

import logging
from collections.abc import Iterable, Iterator

from phasegate.application.project_type import ProjectTypeConfig
from phasegate.domain.exceptions import (
    DuplicateProjectTypeError,
    UnknownProjectTypeError,
)

logger = logging.getLogger(__name__)


class ProjectTypeRegistry:
    """Maps type names to their configurations."""

    def __init__(self, configs: Iterable[ProjectTypeConfig] = ()):
        self._configs: dict[str, ProjectTypeConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: ProjectTypeConfig) -> None:
        """
        Raises:
            DuplicateProjectTypeError: The name is already registered
        """
        if config.name in self._configs:
            raise DuplicateProjectTypeError(config.name)
        self._configs[config.name] = config
        logger.debug("Registered project type %s", config.name)

    def get(self, name: str) -> ProjectTypeConfig:
        """
        Raises:
            UnknownProjectTypeError: The name is not registered
        """
        config = self._configs.get(name)
        if config is None:
            raise UnknownProjectTypeError(name, self.names())
        return config

    def names(self) -> list[str]:
        return sorted(self._configs)

    def detect(self, branch: str, default: str = "standard") -> str:
        """Type name whose branch prefix matches ``branch``, else ``default``."""
        for config in self._configs.values():
            if config.branch_prefix and branch.startswith(config.branch_prefix):
                return config.name
        return default

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[ProjectTypeConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)
