"""Command template resolution for custom agent commands.

Templates are plain strings such as ``claude -p {prompt}``. ``{prompt}`` and
``{branch}`` always become exactly one argument each, so multi-line prompts
and empty branch names survive intact.
"""

import errno
import shutil

from linear_tui.agents.backend import LookPath
from linear_tui.agents.errors import BinaryNotFoundError, EmptyTemplateError

PROMPT_PLACEHOLDER = "{prompt}"
BRANCH_PLACEHOLDER = "{branch}"


def parse_command(
    command_template: str,
    full_prompt: str,
    branch_name: str,
    look_path: LookPath = shutil.which,
) -> tuple[str, list[str]]:
    """Resolve a command template into ``(binary, argv)``.

    ``argv[0]`` is the resolved binary path, not the raw token.

    Raises:
        EmptyTemplateError: the template has no tokens.
        BinaryNotFoundError: the first token is not on the search path.
    """
    tokens = command_template.split()
    if not tokens:
        raise EmptyTemplateError()

    resolved = look_path(tokens[0])
    if not resolved:
        lookup_error = FileNotFoundError(
            errno.ENOENT, "executable file not found in $PATH", tokens[0]
        )
        raise BinaryNotFoundError(tokens[0]) from lookup_error

    args = [resolved]
    for token in tokens[1:]:
        if token == PROMPT_PLACEHOLDER:
            args.append(full_prompt)
        elif token == BRANCH_PLACEHOLDER:
            args.append(branch_name)
        else:
            args.append(token)
    return resolved, args
