from config import ONBOARDING_STEPS

ACTIONS = ("next", "back", "jump", "skip")


class OnboardingFlow:
    """Linear walk through the onboarding steps.

    Only the step position and the completed flag live here; persisting
    completion against the user record is left to the caller. Once completed,
    further transitions are ignored.
    """

    def __init__(self, step_count: int = len(ONBOARDING_STEPS), step_index: int = 0):
        if step_count < 1:
            raise ValueError("Onboarding needs at least one step")
        if not 0 <= step_index < step_count:
            raise ValueError(f"Step {step_index} is out of range")
        self.step_count = step_count
        self.step_index = step_index
        self.completed = False

    @property
    def is_first(self) -> bool:
        return self.step_index == 0

    @property
    def is_last(self) -> bool:
        return self.step_index == self.step_count - 1

    @property
    def progress_percent(self) -> int:
        return round((self.step_index + 1) / self.step_count * 100)

    def next(self):
        if self.completed:
            return
        if self.is_last:
            self.complete()
        else:
            self.step_index += 1

    def back(self):
        if self.completed or self.is_first:
            return
        self.step_index -= 1

    def jump_to(self, index: int):
        if not 0 <= index < self.step_count:
            raise ValueError(f"Step {index} is out of range")
        if self.completed:
            return
        self.step_index = index

    def skip(self):
        self.complete()

    def complete(self):
        self.completed = True

    def apply(self, action: str, target: int = 0):
        """Dispatch a submitted form action ("next", "back", "jump", "skip")."""
        if action == "next":
            self.next()
        elif action == "back":
            self.back()
        elif action == "jump":
            self.jump_to(target)
        elif action == "skip":
            self.skip()
        else:
            raise ValueError(f"Unknown onboarding action: {action}")
