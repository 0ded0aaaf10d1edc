from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
import hashlib


@dataclass(frozen=True)
class Version:
    """
    Semantic version of crucible plus the build fingerprint.

    The hash covers the package sources so that two installs reporting the
    same semver can still be told apart in telemetry headers.
    """
    major: int
    minor: int
    patch: int
    hash: str
    date: datetime

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def full_version(self) -> str:
        """Return version with short hash and build date."""
        return f"{self} (hash: {self.hash_short()}, date: {self.date_string()})"

    def semver(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def hash_short(self, length: int = 8) -> str:
        return self.hash[:length]

    def date_string(self, fmt: str = "%Y-%m-%d") -> str:
        return self.date.strftime(fmt)


def _compute_package_hash() -> str:
    """SHA256 over the crucible package's Python sources, in sorted order."""
    package_dir = Path(__file__).resolve().parent.parent
    hasher = hashlib.sha256()

    for source in sorted(package_dir.rglob("*.py")):
        if "__pycache__" in source.parts:
            continue
        try:
            hasher.update(source.read_bytes())
        except OSError:
            continue

    return hasher.hexdigest()


CRUCIBLE_VERSION = Version(
    major=0,
    minor=1,
    patch=0,
    hash=_compute_package_hash(),
    date=datetime(2025, 3, 20),
)
