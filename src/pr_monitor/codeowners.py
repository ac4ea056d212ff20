"""CODEOWNERS parsing and owner resolution.

Rules are evaluated the way GitHub evaluates CODEOWNERS: in declaration order,
with the last matching rule deciding the owners of a path. Only individual
users are tracked; team references (``@org/team``) are dropped while parsing
because they cannot be added as assignees.
"""

from dataclasses import dataclass
from functools import lru_cache
import logging
import re
from typing import Iterable, List, Optional, Set, Tuple

from gidgethub import BadRequest, GitHubException

from pr_monitor import config as app_config
from pr_monitor.github.api import API

logger = logging.getLogger("pr_monitor")


@dataclass(frozen=True)
class OwnershipRule:
    pattern: str
    owners: Tuple[str, ...]


def parse_codeowners(content: str) -> List[OwnershipRule]:
    """Parse CODEOWNERS text into rules, in file order.

    Never raises: blank lines, comments, lines without owners and lines that
    only name teams do not produce a rule.
    """
    rules: List[OwnershipRule] = []

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        parts = line.split()
        if len(parts) < 2:
            continue

        pattern = parts[0]
        owners = []
        for owner in parts[1:]:
            if owner.startswith("@"):
                owner = owner[1:]
            if "/" in owner:
                continue
            owners.append(owner)

        if len(owners) == 0:
            continue

        rule = OwnershipRule(pattern=pattern, owners=tuple(owners))
        logger.debug("Parsed rule: %s -> %s", rule.pattern, ", ".join(rule.owners))
        rules.append(rule)

    return rules


def glob_to_regex(pattern: str) -> str:
    """Translate a CODEOWNERS glob into an anchored regular expression.

    The pattern is scanned left to right and each token is translated exactly
    once, so the expansion of ``**/`` is never touched again by the rule for a
    single ``*``:

    - ``**/`` matches zero or more leading directories
    - ``/**`` (not followed by ``/``) matches an optional slash and anything after it
    - ``**`` matches anything, including ``/``
    - ``*`` matches anything within one path segment
    - everything else is literal
    """
    out: List[str] = []
    i = 0
    n = len(pattern)

    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and not pattern.startswith("/**/", i):
            out.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1

    return "^" + "".join(out) + "$"


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile(glob_to_regex(pattern))


def match_pattern(filename: str, pattern: str) -> bool:
    if pattern == "*":
        return True

    # a leading slash only anchors to the repository root
    path = filename[1:] if filename.startswith("/") else filename
    pat = pattern[1:] if pattern.startswith("/") else pattern

    if path == pat:
        return True

    if pat.endswith("/"):
        directory = pat[:-1]
        return path == directory or path.startswith(directory + "/")

    if pat.startswith("*."):
        return path.endswith(pat[1:])

    if "*" in pat:
        return _compile(pat).match(path) is not None

    if "." not in pat:
        return path == pat or path.startswith(pat + "/")

    return False


def match_file_to_owners(filename: str, rules: Iterable[OwnershipRule]) -> Set[str]:
    """Owners of ``filename``: the last matching rule wins, earlier matches are discarded."""
    owners: Tuple[str, ...] = ()
    for rule in rules:
        if match_pattern(filename, rule.pattern):
            owners = rule.owners
    return set(owners)


def collect_owners(filenames: Iterable[str], rules: List[OwnershipRule]) -> Set[str]:
    all_owners: Set[str] = set()
    for filename in filenames:
        owners = match_file_to_owners(filename, rules)
        if len(owners) > 0:
            logger.debug("File %s matches owners: %s", filename, ", ".join(sorted(owners)))
            all_owners |= owners
    return all_owners


async def get_pr_codeowners(
    api: API, number: int, rules: List[OwnershipRule]
) -> List[str]:
    try:
        files = [f.filename async for f in api.get_pull_request_files(number)]
    except GitHubException as e:
        logger.warning("Failed to get files for PR #%d: %s", number, e)
        files = []

    logger.debug("PR #%d has %d changed files", number, len(files))

    return sorted(collect_owners(files, rules))


async def load_codeowners(
    api: API, path: Optional[str] = None
) -> Optional[List[OwnershipRule]]:
    path = path or app_config.CODEOWNERS_PATH
    try:
        content = await api.get_content(path)
    except BadRequest as e:
        if e.status_code == 404:
            logger.debug("No CODEOWNERS file at %s", path)
            return None
        raise e

    if content.type != "file":
        logger.debug("CODEOWNERS at %s is a %s, not a file", path, content.type)
        return None

    try:
        text = content.decoded_content()
    except ValueError as e:
        logger.warning("Unable to read CODEOWNERS at %s: %s", path, e)
        return None

    logger.debug("Found CODEOWNERS at: %s", path)
    return parse_codeowners(text)
