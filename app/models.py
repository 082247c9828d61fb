"""Dashboard data models."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Issue:
    """An issue or pull request annotated with approval and merge status."""

    repo: str
    number: int
    title: str
    url: str
    creator: str = "unknown"
    approved: bool = False
    approved_by: str | None = None
    merged: bool = False
    is_pull_request: bool = False
    state: str = "open"

    def __post_init__(self):
        if self.approved != (self.approved_by is not None):
            raise ValueError(
                f"{self.repo}#{self.number}: approved_by must be set "
                "exactly when approved is true"
            )
        if self.merged and not self.is_pull_request:
            raise ValueError(f"{self.repo}#{self.number}: only pull requests merge")

    @property
    def key(self) -> str:
        """Stable row identifier across repositories."""
        return f"{self.repo}-{self.number}"

    def to_dict(self) -> dict:
        return asdict(self)
