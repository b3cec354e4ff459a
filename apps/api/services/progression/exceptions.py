"""Errors raised by the progression core."""

from typing import Sequence


class ProgressionError(Exception):
    """Base class for progression failures the API maps to client errors."""


class NoExercisesForStyleError(ProgressionError):
    def __init__(self, training_style: str):
        self.training_style = training_style
        super().__init__(f"No exercises found for training style '{training_style}'")


class InsufficientEquipmentError(ProgressionError):
    def __init__(self, training_style: str, available_equipment: Sequence[str]):
        self.training_style = training_style
        self.available_equipment = list(available_equipment)
        equipment = ", ".join(self.available_equipment) or "none"
        super().__init__(
            f"No {training_style} exercises match the available equipment ({equipment}). "
            "Add equipment to your profile or choose a different training style."
        )
