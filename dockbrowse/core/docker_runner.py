# dockbrowse/core/docker_runner.py - Runs shell commands inside running containers

import logging

import docker
from docker.errors import APIError, NotFound, DockerException
from requests.exceptions import ReadTimeout, ConnectionError

from ..models.execution import ExecResult
from .config import EXEC_TIMEOUT
from .errors import ChannelFailureError

logger = logging.getLogger(__name__)


class ContainerExecChannel:
    """
    Command-execution channel into named containers.

    A command that runs and exits non-zero is returned as a normal ExecResult.
    Anything that prevents the command from running at all (daemon down,
    container missing or stopped, API error, timeout) raises ChannelFailureError,
    so callers can tell "failed" apart from "succeeded with empty output".
    """

    def __init__(self, client=None, timeout: int = EXEC_TIMEOUT):
        self._client = client
        self.timeout = timeout

    # --- Docker Client Initialization ---
    @property
    def client(self):
        if self._client is None:
            try:
                self._client = docker.from_env(timeout=self.timeout)
                self._client.ping()
                logger.info("Docker client initialized and connected successfully.")
            except (DockerException, ConnectionError) as e:
                logger.error(f"Failed to initialize Docker client: {e}")
                self._client = None
                raise ChannelFailureError(f"Docker is not available: {e}")
        return self._client

    def _get_container(self, container_name: str):
        try:
            container = self.client.containers.get(container_name)
        except NotFound:
            logger.warning(f"Container '{container_name}' not found.")
            raise ChannelFailureError(f"Container '{container_name}' not found.")
        except APIError as e:
            logger.error(f"APIError looking up container '{container_name}': {e}", exc_info=True)
            raise ChannelFailureError(f"Docker API error: {e}")
        except (ReadTimeout, ConnectionError) as e:
            logger.error(f"Timeout looking up container '{container_name}': {e}")
            raise ChannelFailureError(f"Docker did not respond within {self.timeout} seconds.")

        if container.status != "running":
            logger.warning(f"Container '{container_name}' is not running (status: {container.status}).")
            raise ChannelFailureError(f"Container '{container_name}' is not running (status: {container.status}).")
        return container

    # --- Core Execution Function ---
    def run(self, container_name: str, command: str) -> ExecResult:
        """
        Runs `command` with `sh -c` inside the running container `container_name`.
        Returns exit code, stdout and stderr.
        """
        container = self._get_container(container_name)
        logger.debug(f"Running command in container '{container_name}': {command}")

        try:
            exit_code, output = container.exec_run(["sh", "-c", command], demux=True)
        except (ReadTimeout, ConnectionError) as e:
            logger.error(f"Timeout ({self.timeout}s) running command in container '{container_name}'.", exc_info=False)
            raise ChannelFailureError(f"Command timed out after {self.timeout} seconds.")
        except APIError as e:
            logger.error(f"Docker API error during exec in '{container_name}': {e}", exc_info=True)
            raise ChannelFailureError(f"Docker API error: {e}")

        stdout_bytes, stderr_bytes = output if output else (None, None)
        stdout_str = stdout_bytes.decode('utf-8', errors='replace') if stdout_bytes else ""
        stderr_str = stderr_bytes.decode('utf-8', errors='replace') if stderr_bytes else ""

        if exit_code is None:
            raise ChannelFailureError(f"No exit status returned by container '{container_name}'.")

        logger.debug(f"Command in '{container_name}' finished with exit code {exit_code}.")
        if exit_code != 0 and stderr_str:
            logger.debug(f"Stderr from '{container_name}':\n{stderr_str}")
        return ExecResult(exit_code=exit_code, stdout=stdout_str, stderr=stderr_str)

    def list_running_containers(self) -> list[str]:
        """Names of running containers, sorted."""
        try:
            containers = self.client.containers.list()
        except APIError as e:
            logger.error(f"APIError listing containers: {e}", exc_info=True)
            raise ChannelFailureError(f"Docker API error: {e}")
        except (ReadTimeout, ConnectionError) as e:
            raise ChannelFailureError(f"Docker did not respond within {self.timeout} seconds.")
        return sorted(c.name for c in containers)
