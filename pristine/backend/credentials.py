"""Administrative credentials and the providers consulted when creating a database is denied.

A provider is any callable taking the descriptor being created, the access denied error and the
backend's conventional administrator name, and returning :class:`Credentials`. The default,
:func:`deny_escalation`, never escalates, which is what unattended runs want.
"""

import getpass
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from pristine.backend.errors import CreationFailed
from pristine.config import ConnectionDescriptor


@dataclass(frozen=True)
class Credentials:
    """Administrative credentials used to escalate database creation.

    A ``username`` of None means the backend's conventional administrator (``root``, ``postgres`` ...).
    """

    username: Optional[str]
    password: Optional[str]


# Called with the descriptor being created, the access denied error and the backend's default admin user
CredentialProvider = Callable[[ConnectionDescriptor, Exception, str], Credentials]


def deny_escalation(descriptor: ConnectionDescriptor, error: Exception, default_user: str) -> Credentials:
    """Refuse to escalate and fail the creation immediately.

    :raises: CreationFailed
    """
    raise CreationFailed(
        f"Access denied creating {descriptor.adapter_name} database '{descriptor.database}' "
        f"and no administrative credentials are available",
        adapter=descriptor.adapter_name,
        database=descriptor.database,
        access_denied=True,
    ) from error


def prompt_for_credentials(descriptor: ConnectionDescriptor, error: Exception, default_user: str) -> Credentials:
    """Ask an operator on the console for administrative credentials.

    Blocks until input is given. The prompt goes to stderr so it stays visible while stdout is silenced.
    """
    sys.stderr.write(f"{error}\nPlease provide administrative credentials for your {descriptor.adapter_name} server\n")
    sys.stderr.write(f"user [{default_user}]> ")
    sys.stderr.flush()
    username = sys.stdin.readline().strip() or default_user
    password = getpass.getpass("password> ", stream=sys.stderr)
    return Credentials(username=username, password=password)


def static_credentials(username: str = None, password: str = None) -> CredentialProvider:
    """Build a provider that always answers with the given credentials.

    :param username: the administrative user, None for the backend's default
    :param password: the administrative password
    :returns: a credential provider
    """

    def provide(descriptor: ConnectionDescriptor, error: Exception, default_user: str) -> Credentials:
        return Credentials(username=username or default_user, password=password)

    return provide
