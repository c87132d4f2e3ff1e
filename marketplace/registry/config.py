"""Configuration for registry reconciliation.

>>> import os
>>> os.environ["MARKETPLACE_REGISTRY_IMAGE"] = "quay.io/example/registry:v1"
>>> RegistryConfig.from_env().image
'quay.io/example/registry:v1'

"""

from __future__ import annotations

import dataclasses as dc
import os

from .errors import RegistryConfigError


@dc.dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Settings applied to every registry workload.

    Attributes
    ----------
    image
        Container image providing the ``appregistry-server`` binary.

    """

    image: str

    def __post_init__(self) -> None:
        """Reject blank images."""
        if not self.image.strip():
            raise RegistryConfigError.empty_image()

    @classmethod
    def from_env(cls) -> RegistryConfig:
        """Build configuration from ``MARKETPLACE_REGISTRY_IMAGE``.

        Raises
        ------
        RegistryConfigError
            If the variable is unset or blank.

        """
        image = os.environ.get("MARKETPLACE_REGISTRY_IMAGE", "").strip()
        if not image:
            raise RegistryConfigError.missing_image()
        return cls(image=image)
