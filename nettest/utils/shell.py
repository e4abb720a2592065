"""Shell command building utilities."""

import shlex


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument
    """
    return shlex.quote(arg)


def sudo_wrap(command: str, sudo: str) -> str:
    """Wrap a command so the whole of it runs under sudo.

    Args:
        command: Shell command text, may contain ``;``, ``&`` and redirects
        sudo: Sudo invocation such as ``sudo -A``; empty runs unprivileged

    Returns:
        ``<sudo> sh -c '<command>'``
    """
    if not sudo:
        return command
    return f"{sudo} sh -c {quote_arg(command)}"
