from __future__ import annotations
import re
from dataclasses import dataclass

_TARGET_PATTERN = re.compile(r"^(?P<owner>[^\s/]+)/(?P<repo>[^\s/]+)$")

DEFAULT_BASE_URL = "https://github.com"


@dataclass(frozen=True)
class TargetRepo:
    """The project whose dependents are being harvested."""
    owner: str
    repo:  str

    @classmethod
    def parse(cls, value: str) -> TargetRepo:
        """
        Build a TargetRepo from an `owner/repo` string.
        Raises ValueError with a usage hint when the shape is wrong.
        """
        match = _TARGET_PATTERN.match((value or "").strip())
        if match is None:
            raise ValueError(
                f"Unable to parse Github owner and repo names from {value!r}. "
                "Please provide owner and repo names like so: owner/repo"
            )
        return cls(owner=match["owner"], repo=match["repo"])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def listing_url(self, base_url: str = DEFAULT_BASE_URL) -> str:
        """URL of the first page of the dependents listing."""
        return f"{base_url.rstrip('/')}/{self.owner}/{self.repo}/network/dependents"

    def __str__(self) -> str:
        return self.full_name
