"""External command result model."""

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Exit status and captured output of an external command."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def summary(self, limit: int = 200) -> str:
        """One-line description for error messages."""
        detail = (self.stderr or self.stdout).strip().splitlines()
        tail = f": {detail[-1][:limit]}" if detail else ""
        return f"{self.argv[0]} exited with status {self.returncode}{tail}"
