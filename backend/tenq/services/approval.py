from tenq.services.set_validator import DAILY_QUESTION_COUNT


class ApprovalSet:
    """Review-time approvals for one generation run. Never persisted.

    Positions are 0-based. Upload is allowed only once every position is approved.
    """

    def __init__(self, size: int = DAILY_QUESTION_COUNT, approved=()):
        self.size = size
        self._approved: set[int] = set()
        for i in approved:
            self.approve(i)

    def _check(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise IndexError(f"position {index} outside 0..{self.size - 1}")

    def approve(self, index: int) -> None:
        self._check(index)
        self._approved.add(index)

    def deny(self, index: int) -> None:
        self._check(index)
        self._approved.discard(index)

    def reset(self) -> None:
        self._approved.clear()

    def is_approved(self, index: int) -> bool:
        return index in self._approved

    def missing(self) -> list[int]:
        return [i for i in range(self.size) if i not in self._approved]

    @property
    def is_complete(self) -> bool:
        return len(self._approved) == self.size

    def __len__(self) -> int:
        return len(self._approved)
