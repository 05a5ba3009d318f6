"""A scene of model instances, each with its own transform."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from cascadeview.geometry import FLT_MAX


@dataclass
class ModelInstance:
    """A shared model placed in the world by its own matrix."""

    model: object
    model_matrix: np.ndarray


@dataclass
class Scene:
    instances: list[ModelInstance] = field(default_factory=list)

    def add_model_instance(self, model, transform) -> None:
        self.instances.append(ModelInstance(model, np.array(transform, dtype=float)))

    def draw(self, shader) -> None:
        for instance in self.instances:
            instance.model.draw(shader, instance.model_matrix)

    def calculate_world_aabb(self) -> tuple[np.ndarray, np.ndarray]:
        """Union of every instance's world-space bounds."""
        low = np.full(3, FLT_MAX)
        high = np.full(3, -FLT_MAX)
        for instance in self.instances:
            model_low, model_high = instance.model.calculate_world_aabb(instance.model_matrix)
            low = np.minimum(low, model_low)
            high = np.maximum(high, model_high)
        return low, high