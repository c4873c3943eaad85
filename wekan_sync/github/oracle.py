"""Pull request state lookups through the GitHub CLI."""

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """Base exception for pull request state lookups."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class OracleQueryError(OracleError):
    """Raised when a single state query fails."""

    pass


class OracleAuthenticationError(OracleError):
    """Raised when the GitHub CLI is not authenticated."""

    pass


class PullRequestStateOracle(ABC):
    """Source of truth for pull request states."""

    @abstractmethod
    async def get_state(self, url: str) -> str:
        """Return the raw state (``MERGED``, ``OPEN`` or ``CLOSED``) of a PR.

        Raises:
            OracleQueryError: If the state cannot be obtained
        """
        pass

    @abstractmethod
    async def verify_auth(self) -> None:
        """Check that queries can be authenticated.

        Raises:
            OracleAuthenticationError: If they cannot
        """
        pass


class GhCliStateOracle(PullRequestStateOracle):
    """Runs ``gh pr view`` for every query.

    Each query is a separate process; arguments are passed as a vector so
    the URL never reaches a shell.
    """

    def __init__(self, gh_binary: str = "gh", timeout: float = 60) -> None:
        """Initialize the oracle.

        Args:
            gh_binary: GitHub CLI executable
            timeout: Per-query timeout in seconds
        """
        self.gh_binary = gh_binary
        self.timeout = timeout

    async def _run(self, *args: str) -> tuple[int, str, str]:
        """Run the CLI and return ``(exit code, stdout, stderr)``.

        Raises:
            OracleQueryError: If the binary is missing or the call times out
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.gh_binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise OracleQueryError(f"Cannot run {self.gh_binary}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except TimeoutError as e:
            process.kill()
            await process.wait()
            raise OracleQueryError(
                f"{self.gh_binary} {args[0]} timed out after {self.timeout}s"
            ) from e

        return (
            process.returncode if process.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def get_state(self, url: str) -> str:
        """Query the state of one pull request."""
        code, stdout, stderr = await self._run(
            "pr", "view", url, "--json", "state", "-q", ".state"
        )
        if code != 0:
            raise OracleQueryError(
                f"gh pr view exited with {code}: {stderr.strip()}", url=url
            )
        return stdout.strip()

    async def verify_auth(self) -> None:
        """Run ``gh auth status``."""
        try:
            code, _, stderr = await self._run("auth", "status")
        except OracleQueryError as e:
            raise OracleAuthenticationError(str(e)) from e

        if code != 0:
            raise OracleAuthenticationError(
                f"gh is not authenticated, run 'gh auth login' first: {stderr.strip()}"
            )
        logger.debug("gh authentication verified")
