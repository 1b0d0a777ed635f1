# dockbrowse/models/execution.py - Pydantic models for container command execution

from pydantic import BaseModel, Field
import re


# --- Utility for Sanitization ---
def sanitize_container_name(name: str) -> str:
    """Basic sanitization for container names used as history categories."""
    sanitized = re.sub(r'[^a-zA-Z0-9_\-.]', '_', name.strip())
    return sanitized[:128]


# --- Execution Result Models ---

class ExecResult(BaseModel):
    """Model for the result of a shell command executed inside a container."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = Field(..., description="Exit status of the command. 0 means success.")

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
