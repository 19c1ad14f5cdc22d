"""Credential providers for network git operations.

GitPython runs the git executable, so a credential is expressed as the
environment overrides that make git authenticate a particular way. Providers
are tried in a fixed order and the first credential the remote accepts wins:

1. SSH agent (``SSH_AUTH_SOCK``)
2. ``~/.ssh/id_rsa``
3. ``~/.ssh/id_ed25519``
4. ``GIT_USER`` / ``GIT_PASSWORD`` environment variables
5. git's own defaults (anonymous, or whatever the user configured)

SSH providers only apply to SSH remotes and the username/password provider
only to HTTP(S) remotes. A rejected credential moves on to the next provider;
any other failure propagates immediately.
"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, TypeVar

from git import GitCommandError

from gitgrip.constants import ENV_GIT_PASSWORD, ENV_GIT_USER
from gitgrip.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "Credential",
    "CredentialChain",
    "CredentialProvider",
    "DefaultCredentialProvider",
    "EnvUserPassProvider",
    "SshAgentProvider",
    "SshKeyFileProvider",
    "default_providers",
    "is_auth_error",
    "is_http_url",
    "is_ssh_url",
]

T = TypeVar("T")

#: ``git@host:owner/repo.git`` style remotes
_SCP_LIKE_URL = re.compile(r"^[\w.-]+@[\w.-]+:")

#: Substrings git prints when the remote rejects the offered credentials
AUTH_ERROR_PATTERNS: tuple[str, ...] = (
    "permission denied",
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "access denied",
    "host key verification failed",
    "terminal prompts disabled",
)

# Never let git block on an interactive prompt while a fallback remains.
_NO_PROMPT = {"GIT_TERMINAL_PROMPT": "0"}


def is_ssh_url(url: str) -> bool:
    """Return True if the remote URL uses the SSH transport."""
    return url.startswith(("ssh://", "git+ssh://")) or bool(_SCP_LIKE_URL.match(url))


def is_http_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def is_auth_error(exc: GitCommandError) -> bool:
    """Check if a git failure was caused by rejected credentials."""
    stderr = str(exc.stderr or exc.stdout or exc).lower()
    return any(pattern in stderr for pattern in AUTH_ERROR_PATTERNS)


@dataclass(frozen=True, slots=True)
class Credential:
    """A way of authenticating one git invocation.

    Attributes:
        provider: Name of the provider that produced this credential.
        env: Environment overrides passed to the git process.
    """

    provider: str
    env: Mapping[str, str] = field(default_factory=dict)


class CredentialProvider(Protocol):
    """Strategy producing a credential for a remote URL, if it can."""

    name: str

    def credential(self, url: str) -> Credential | None: ...


class SshAgentProvider:
    """Authenticate SSH remotes through a running SSH agent."""

    name = "ssh-agent"

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def credential(self, url: str) -> Credential | None:
        sock = self._environ.get("SSH_AUTH_SOCK")
        if not is_ssh_url(url) or not sock:
            return None
        return Credential(
            self.name,
            {
                **_NO_PROMPT,
                "SSH_AUTH_SOCK": sock,
                "GIT_SSH_COMMAND": "ssh -o BatchMode=yes",
            },
        )


class SshKeyFileProvider:
    """Authenticate SSH remotes with a private key file under ``~/.ssh``."""

    def __init__(self, key_name: str, home: Path | None = None) -> None:
        self.name = f"ssh-key:{key_name}"
        self._key_name = key_name
        self._home = home

    @property
    def key_path(self) -> Path:
        home = self._home if self._home is not None else Path.home()
        return home / ".ssh" / self._key_name

    def credential(self, url: str) -> Credential | None:
        key = self.key_path
        if not is_ssh_url(url) or not key.exists():
            return None
        command = (
            f"ssh -i {shlex.quote(str(key))} -o IdentitiesOnly=yes -o BatchMode=yes"
        )
        return Credential(self.name, {**_NO_PROMPT, "GIT_SSH_COMMAND": command})


class EnvUserPassProvider:
    """Authenticate HTTP(S) remotes with ``GIT_USER``/``GIT_PASSWORD``.

    The values are handed to git through an inline credential helper that
    reads them from the environment, so they never appear on a command line.
    """

    name = "env-userpass"

    _HELPER = (
        f'!f() {{ echo "username=${{{ENV_GIT_USER}}}"; '
        f'echo "password=${{{ENV_GIT_PASSWORD}}}"; }}; f'
    )

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def credential(self, url: str) -> Credential | None:
        user = self._environ.get(ENV_GIT_USER)
        password = self._environ.get(ENV_GIT_PASSWORD)
        if not is_http_url(url) or not user or not password:
            return None
        return Credential(
            self.name,
            {
                **_NO_PROMPT,
                ENV_GIT_USER: user,
                ENV_GIT_PASSWORD: password,
                "GIT_CONFIG_COUNT": "1",
                "GIT_CONFIG_KEY_0": "credential.helper",
                "GIT_CONFIG_VALUE_0": self._HELPER,
            },
        )


class DefaultCredentialProvider:
    """Last resort: let git use its own configuration unchanged."""

    name = "default"

    def credential(self, url: str) -> Credential | None:
        return Credential(self.name, dict(_NO_PROMPT))


def default_providers(home: Path | None = None) -> list[CredentialProvider]:
    """Build the provider list in the fixed fallback order."""
    return [
        SshAgentProvider(),
        SshKeyFileProvider("id_rsa", home=home),
        SshKeyFileProvider("id_ed25519", home=home),
        EnvUserPassProvider(),
        DefaultCredentialProvider(),
    ]


class CredentialChain:
    """Try credentials in order until the remote accepts one.

    Example:
        ```python
        chain = CredentialChain()
        chain.run(url, lambda env: repo.git.fetch("origin", env=env))
        ```
    """

    def __init__(self, providers: Sequence[CredentialProvider] | None = None) -> None:
        self._providers = (
            list(providers) if providers is not None else default_providers()
        )

    @property
    def providers(self) -> list[CredentialProvider]:
        return list(self._providers)

    def candidates(self, url: str) -> list[Credential]:
        """Credentials applicable to ``url``, in the order they will be tried."""
        found = [
            cred
            for provider in self._providers
            if (cred := provider.credential(url)) is not None
        ]
        return found or [Credential("default", dict(_NO_PROMPT))]

    def run(self, url: str, operation: Callable[[Mapping[str, str]], T]) -> T:
        """Run ``operation`` with each candidate credential until one is accepted.

        Args:
            url: Remote URL the operation talks to.
            operation: Callable receiving the environment overrides to use.

        Returns:
            Whatever ``operation`` returns for the first accepted credential.

        Raises:
            GitCommandError: The last authentication failure if every
                credential was rejected, or any non-authentication failure.
        """
        last_error: GitCommandError | None = None
        for cred in self.candidates(url):
            try:
                result = operation(cred.env)
            except GitCommandError as e:
                if not is_auth_error(e):
                    raise
                logger.debug("credential_rejected", provider=cred.provider, url=url)
                last_error = e
                continue
            logger.debug("credential_accepted", provider=cred.provider, url=url)
            return result

        assert last_error is not None
        raise last_error
